"""Document-driven OPT STEM stages.

The stage of an OPT application is never stored. It is derived from the set
of visa documents attached to the application every time it is needed, so it
cannot drift from the evidence even if a status update was skipped.
"""

from __future__ import annotations

import enum
from collections.abc import Iterable
from typing import Protocol


I20 = "I-20"
OPT_STEM_RECEIPT = "OPT_STEM_RECEIPT"
OPT_STEM_EAD = "OPT_STEM_EAD"

VISA_DOCUMENT_TYPES: frozenset[str] = frozenset({I20, OPT_STEM_RECEIPT, OPT_STEM_EAD})


class VisaStage(str, enum.Enum):
    INITIAL = "INITIAL"
    I20_UPLOADED = "I20_UPLOADED"
    RECEIPT_UPLOADED = "RECEIPT_UPLOADED"
    EAD_UPLOADED = "EAD_UPLOADED"


class _Typed(Protocol):
    type: str


# Highest stage first; the first document type present wins.
_STAGE_LADDER: tuple[tuple[str, VisaStage], ...] = (
    (OPT_STEM_EAD, VisaStage.EAD_UPLOADED),
    (OPT_STEM_RECEIPT, VisaStage.RECEIPT_UPLOADED),
    (I20, VisaStage.I20_UPLOADED),
)

_PREREQUISITES: dict[str, str | None] = {
    I20: None,
    OPT_STEM_RECEIPT: I20,
    OPT_STEM_EAD: OPT_STEM_RECEIPT,
}

_PREREQUISITE_MESSAGES: dict[str, str] = {
    I20: "Please upload I-20 first",
    OPT_STEM_RECEIPT: "Please upload OPT STEM Receipt first",
}

_NEXT_STEP_MESSAGES: dict[VisaStage, str] = {
    VisaStage.INITIAL: "Please download I-983, fill it out, and submit to your school.",
    VisaStage.I20_UPLOADED: "Please upload your OPT STEM Receipt.",
    VisaStage.RECEIPT_UPLOADED: "Please upload your OPT STEM EAD when received.",
    VisaStage.EAD_UPLOADED: "Your OPT STEM application is complete!",
}


def resolve_stage(documents: Iterable[_Typed | str]) -> VisaStage:
    """Map a collection of documents (or bare type tags) to the current stage.

    Only existence matters: duplicates never advance the stage further.
    """

    present = {d if isinstance(d, str) else d.type for d in documents}
    for document_type, stage in _STAGE_LADDER:
        if document_type in present:
            return stage
    return VisaStage.INITIAL


def is_visa_document_type(document_type: str | None) -> bool:
    return document_type in VISA_DOCUMENT_TYPES


def prerequisite_for(document_type: str) -> str | None:
    """Document type that must already exist before `document_type` is accepted."""

    if document_type not in _PREREQUISITES:
        raise ValueError(f"Unknown visa document type: {document_type}")
    return _PREREQUISITES[document_type]


def missing_prerequisite_message(prerequisite: str) -> str:
    return _PREREQUISITE_MESSAGES[prerequisite]


def next_step_message(stage: VisaStage) -> str:
    return _NEXT_STEP_MESSAGES.get(stage, "Please contact HR for next steps.")
