"""Upload Status Projection — ordered rule table from raw columns to DerivedStatus.

Invariants:
    - Rules are evaluated top to bottom; the first match wins
    - None in a rule position matches any value
    - Every (UploadStatus, ProcessingStatus) pair maps to exactly one DerivedStatus
    - Precedence is fixed: polling clients depend on it

Design Decisions:
    - Data table over if/else chain: the precedence is readable in one place and testable
      over the whole 7x5 input domain
"""

from typing import NamedTuple

from fleetdesk.core.domain_types import DerivedStatus, ProcessingStatus, UploadStatus


class StatusRule(NamedTuple):
    upload: UploadStatus | None
    processing: ProcessingStatus | None
    derived: DerivedStatus


STATUS_RULES: tuple[StatusRule, ...] = (
    StatusRule(UploadStatus.MANUALLY_COMPLETED, ProcessingStatus.COMPLETED, DerivedStatus.MANUALLY_COMPLETED),
    StatusRule(UploadStatus.COMPLETED, ProcessingStatus.COMPLETED, DerivedStatus.COMPLETED),
    StatusRule(UploadStatus.READY_FOR_COMPLETION, None, DerivedStatus.READY_FOR_COMPLETION),
    StatusRule(UploadStatus.FAILED, None, DerivedStatus.FAILED),
    StatusRule(None, ProcessingStatus.FAILED, DerivedStatus.FAILED),
    StatusRule(UploadStatus.PROCESSING, None, DerivedStatus.PROCESSING),
    StatusRule(None, ProcessingStatus.PROCESSING, DerivedStatus.PROCESSING),
    StatusRule(UploadStatus.UPLOADING, None, DerivedStatus.UPLOADING),
)


def _matches(rule: StatusRule, upload: UploadStatus, processing: ProcessingStatus) -> bool:
    return (
        (rule.upload is None or rule.upload == upload)
        and (rule.processing is None or rule.processing == processing)
    )


def derive_status(
    upload: UploadStatus | str, processing: ProcessingStatus | str,
) -> DerivedStatus:
    """Project the two raw status columns onto the polling status."""
    upload = UploadStatus(upload)
    processing = ProcessingStatus(processing)
    for rule in STATUS_RULES:
        if _matches(rule, upload, processing):
            return rule.derived
    return DerivedStatus.PENDING
