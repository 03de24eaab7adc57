# Import models here so Base.metadata sees every table
from .application import Application, ApplicationStatus, ApplicationType  # noqa: F401
from .document import Document  # noqa: F401
