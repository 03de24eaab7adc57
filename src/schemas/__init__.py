from .application import (
    ApplicationCreate,
    ApplicationListItem,
    ApplicationRead,
    ApplicationStatusRead,
    ApplicationUpdate,
    HRDecision,
)
from .document import DocumentRead, DocumentUpload
from .visa import (
    NextStepsRead,
    PhaseRead,
    TemplateUrlRead,
    TypedVisaDocumentUpload,
    VisaApplicationCreate,
    VisaApplicationRead,
    VisaDocumentRead,
    VisaDocumentUpload,
)

__all__ = [
    "ApplicationCreate",
    "ApplicationListItem",
    "ApplicationRead",
    "ApplicationStatusRead",
    "ApplicationUpdate",
    "DocumentRead",
    "DocumentUpload",
    "HRDecision",
    "NextStepsRead",
    "PhaseRead",
    "TemplateUrlRead",
    "TypedVisaDocumentUpload",
    "VisaApplicationCreate",
    "VisaApplicationRead",
    "VisaDocumentRead",
    "VisaDocumentUpload",
]
