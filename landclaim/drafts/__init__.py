"""
Submission drafts: step payloads, merging and completion checks.
"""

from landclaim.drafts.models import (
    DraftPayload,
    FinalizableDraft,
    StepUpdate,
    StepValidation,
    SubmissionDraft,
    parse_step_update,
    validate_step_completion,
)

__all__ = [
    "DraftPayload",
    "FinalizableDraft",
    "StepUpdate",
    "StepValidation",
    "SubmissionDraft",
    "parse_step_update",
    "validate_step_completion",
]
