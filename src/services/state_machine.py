"""Status transitions for onboarding and OPT STEM applications.

Two layers have to agree here: the persisted top-level status
(Open -> Pending -> Approved/Rejected) and, for OPT applications, the
document-derived stage from `src.services.stages`. Everything in this module
is pure; services load state, call in here, and persist the outcome.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from src.models.application import ApplicationStatus, ApplicationType
from src.services.results import ErrorKind, WorkflowError
from src.services.stages import I20, OPT_STEM_EAD, OPT_STEM_RECEIPT, VisaStage, next_step_message


class Operation(str, enum.Enum):
    UPDATE = "update"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    UPLOAD_VISA_DOCUMENT = "upload visa documents to"
    UPLOAD_DOCUMENT = "upload documents to"
    DELETE = "delete"
    DELETE_DOCUMENT = "delete documents from"


_ALL = frozenset(ApplicationStatus)

ALLOWED_FROM: dict[Operation, frozenset[ApplicationStatus]] = {
    Operation.UPDATE: frozenset({ApplicationStatus.OPEN, ApplicationStatus.REJECTED, ApplicationStatus.PENDING}),
    Operation.SUBMIT: frozenset({ApplicationStatus.OPEN, ApplicationStatus.REJECTED}),
    Operation.APPROVE: frozenset({ApplicationStatus.PENDING}),
    Operation.REJECT: frozenset({ApplicationStatus.PENDING}),
    # Nothing leaves Approved, so a visa upload (which sets Pending) cannot start there.
    Operation.UPLOAD_VISA_DOCUMENT: _ALL - {ApplicationStatus.APPROVED},
    Operation.UPLOAD_DOCUMENT: frozenset({ApplicationStatus.OPEN, ApplicationStatus.REJECTED, ApplicationStatus.PENDING}),
    Operation.DELETE: frozenset({ApplicationStatus.OPEN, ApplicationStatus.REJECTED}),
    Operation.DELETE_DOCUMENT: frozenset({ApplicationStatus.OPEN, ApplicationStatus.REJECTED, ApplicationStatus.PENDING}),
}

ACTIVE_STATUSES: tuple[ApplicationStatus, ...] = (ApplicationStatus.OPEN, ApplicationStatus.PENDING)

OPT_CREATED_COMMENT = "OPT STEM Application - Awaiting I-983 submission"


def check_transition(operation: Operation, status: ApplicationStatus) -> WorkflowError | None:
    """Return an InvalidState error if `operation` is illegal from `status`."""

    if status in ALLOWED_FROM[operation]:
        return None
    return WorkflowError(
        kind=ErrorKind.INVALID_STATE,
        message=f"Cannot {operation.value} application with status: {status.value}",
    )


# --------------------------------------------------------------------------
# Approval / rejection
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class Decision:
    """Resulting status and comment of an HR decision, plus the notification text."""

    status: ApplicationStatus
    comment: str | None
    notice_status: str
    notice_message: str


def decide_approval(
    application_type: ApplicationType,
    comment: str | None,
    *,
    stage: VisaStage | None = None,
) -> Decision:
    """Approve a Pending application.

    ONBOARDING applications are approved outright. OPT applications are only
    Approved once the EAD is on file; any earlier stage is re-opened so the
    employee can upload the next document.
    """

    if application_type is ApplicationType.ONBOARDING:
        return Decision(
            status=ApplicationStatus.APPROVED,
            comment=comment,
            notice_status="Approved",
            notice_message=comment or "",
        )

    stage = stage or VisaStage.INITIAL
    next_step = next_step_message(stage)
    notice_message = f"Your submission has been approved. {next_step}"

    if stage is VisaStage.EAD_UPLOADED:
        return Decision(
            status=ApplicationStatus.APPROVED,
            comment=f"OPT STEM Application approved. {comment or ''}".strip(),
            notice_status="Approved",
            notice_message=notice_message,
        )

    return Decision(
        status=ApplicationStatus.OPEN,
        comment=f"Stage approved. {next_step}",
        notice_status="Approved",
        notice_message=notice_message,
    )


def decide_rejection(application_type: ApplicationType, comment: str | None, *, visa: bool = False) -> Decision:
    if visa and application_type is ApplicationType.OPT:
        reason = comment if comment is not None else "Please review and resubmit"
        return Decision(
            status=ApplicationStatus.REJECTED,
            comment=f"Rejected: {reason}",
            notice_status="Rejected",
            notice_message=f"Your submission has been rejected. Reason: {reason}",
        )

    return Decision(
        status=ApplicationStatus.REJECTED,
        comment=comment,
        notice_status="Rejected",
        notice_message=comment or "",
    )


# --------------------------------------------------------------------------
# Visa uploads
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class UploadEffect:
    comment: str
    notice_status: str
    notice_message: str


UPLOAD_EFFECTS: dict[str, UploadEffect] = {
    I20: UploadEffect(
        comment="I-20 uploaded - Awaiting HR approval",
        notice_status="I-20 Uploaded",
        notice_message=(
            "Your I-20 has been uploaded and is pending HR review. "
            "Next step: Upload OPT STEM Receipt."
        ),
    ),
    OPT_STEM_RECEIPT: UploadEffect(
        comment="OPT STEM Receipt uploaded - Awaiting HR approval",
        notice_status="OPT STEM Receipt Uploaded",
        notice_message=(
            "Your OPT STEM Receipt has been uploaded. "
            "Next step: Upload OPT STEM EAD when received."
        ),
    ),
    OPT_STEM_EAD: UploadEffect(
        comment="OPT STEM EAD uploaded - Awaiting final HR approval",
        notice_status="OPT STEM EAD Uploaded",
        notice_message="Your OPT STEM EAD has been uploaded and is pending final HR approval.",
    ),
}


# --------------------------------------------------------------------------
# Stage-aware phase
# --------------------------------------------------------------------------


class PhaseKind(str, enum.Enum):
    OPEN = "Open"
    AWAITING_NEXT_STAGE = "AwaitingNextStage"
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


@dataclass(frozen=True)
class WorkflowPhase:
    """Status with the `Open` overload split out.

    A stage approval on an OPT application re-opens it, so a flat `Open` can
    mean "freshly created" or "waiting for the next document".
    `AwaitingNextStage` carries the stage that was approved.
    """

    kind: PhaseKind
    stage: VisaStage | None = None

    @property
    def status(self) -> ApplicationStatus:
        if self.kind is PhaseKind.AWAITING_NEXT_STAGE:
            return ApplicationStatus.OPEN
        return ApplicationStatus(self.kind.value)


def phase_of(
    status: ApplicationStatus,
    application_type: ApplicationType,
    stage: VisaStage | None = None,
) -> WorkflowPhase:
    if (
        status is ApplicationStatus.OPEN
        and application_type is ApplicationType.OPT
        and stage is not None
        and stage is not VisaStage.INITIAL
    ):
        return WorkflowPhase(kind=PhaseKind.AWAITING_NEXT_STAGE, stage=stage)
    return WorkflowPhase(kind=PhaseKind(status.value), stage=stage)


# --------------------------------------------------------------------------
# Next steps
# --------------------------------------------------------------------------


class NextAction(str, enum.Enum):
    DOWNLOAD_I983 = "DOWNLOAD_I983"
    UPLOAD_I20 = "UPLOAD_I20"
    UPLOAD_RECEIPT = "UPLOAD_RECEIPT"
    UPLOAD_EAD = "UPLOAD_EAD"
    WAIT_APPROVAL = "WAIT_APPROVAL"
    WAIT_FINAL_APPROVAL = "WAIT_FINAL_APPROVAL"
    COMPLETE = "COMPLETE"
    UNKNOWN = "UNKNOWN"


_DOWNLOAD_I983 = (NextAction.DOWNLOAD_I983, "Download I-983 form, fill it out, and submit to your school")
_UNKNOWN = (NextAction.UNKNOWN, "Please contact HR for assistance")

_NEXT_STEPS: dict[tuple[VisaStage, ApplicationStatus], tuple[NextAction, str]] = {
    (VisaStage.INITIAL, ApplicationStatus.OPEN): _DOWNLOAD_I983,
    (VisaStage.INITIAL, ApplicationStatus.REJECTED): _DOWNLOAD_I983,
    (VisaStage.INITIAL, ApplicationStatus.PENDING): (
        NextAction.WAIT_APPROVAL,
        "Please wait for HR to review your I-983",
    ),
    (VisaStage.I20_UPLOADED, ApplicationStatus.PENDING): (
        NextAction.WAIT_APPROVAL,
        "Please wait for HR to review your I-20",
    ),
    (VisaStage.I20_UPLOADED, ApplicationStatus.OPEN): (
        NextAction.UPLOAD_RECEIPT,
        "Please upload your OPT STEM Receipt",
    ),
    (VisaStage.I20_UPLOADED, ApplicationStatus.REJECTED): (
        NextAction.UPLOAD_I20,
        "Your I-20 was rejected. After receiving a corrected I-20 from your school, upload it here",
    ),
    (VisaStage.RECEIPT_UPLOADED, ApplicationStatus.PENDING): (
        NextAction.WAIT_APPROVAL,
        "Please wait for HR to review your OPT STEM Receipt",
    ),
    (VisaStage.RECEIPT_UPLOADED, ApplicationStatus.OPEN): (
        NextAction.UPLOAD_EAD,
        "Please upload your OPT STEM EAD card when received",
    ),
    (VisaStage.RECEIPT_UPLOADED, ApplicationStatus.REJECTED): (
        NextAction.UPLOAD_RECEIPT,
        "Your OPT STEM Receipt was rejected. Please upload it again",
    ),
    (VisaStage.EAD_UPLOADED, ApplicationStatus.PENDING): (
        NextAction.WAIT_FINAL_APPROVAL,
        "Please wait for HR to review your OPT STEM EAD",
    ),
    (VisaStage.EAD_UPLOADED, ApplicationStatus.REJECTED): (
        NextAction.UPLOAD_EAD,
        "Your OPT STEM EAD was rejected. Please upload it again",
    ),
    (VisaStage.EAD_UPLOADED, ApplicationStatus.APPROVED): (
        NextAction.COMPLETE,
        "Congratulations! Your OPT STEM application has been approved",
    ),
}


def next_steps(stage: VisaStage, status: ApplicationStatus) -> tuple[NextAction, str]:
    return _NEXT_STEPS.get((stage, status), _UNKNOWN)
