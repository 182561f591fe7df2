"""
Advertisement state transitions.

Every function here takes a record and returns an updated copy; nothing
is persisted. The repository writes the copy back with a version check.
"""
from __future__ import annotations

import uuid
from typing import Any, Optional

from adonomics.errors import InvalidRequestError, InvalidTransitionError
from adonomics.models import (
    DECIDED_STATUSES,
    DECISION_STATUS,
    AdvertisementRecord,
    AdvertisementStatus,
    Decision,
    DecisionType,
    IndexedVideo,
    PerformanceMetrics,
    StatusHistoryEntry,
    Synthesis,
    TaskHandle,
    VideoSource,
    utcnow,
)

Status = AdvertisementStatus

ALLOWED_TRANSITIONS: dict[AdvertisementStatus, frozenset] = {
    Status.UPLOAD: frozenset({Status.ANALYZING}),
    Status.ANALYZING: frozenset({Status.UPLOAD, Status.ANALYZED}),
    Status.ANALYZED: DECIDED_STATUSES,
    Status.APPROVED: DECIDED_STATUSES,
    Status.SUSPENDED: DECIDED_STATUSES,
    Status.REJECTED: DECIDED_STATUSES,
}


def new_advertisement(
    user_id: str,
    source: VideoSource,
    task: TaskHandle,
    indexed: Optional[IndexedVideo] = None,
) -> AdvertisementRecord:
    now = utcnow()
    return AdvertisementRecord(
        id=str(uuid.uuid4()),
        user_id=user_id,
        video_filename=source.filename,
        video_file_size=source.file_size,
        video_url=source.url,
        twelve_labs_index_id=task.index_id,
        twelve_labs_task_id=task.task_id,
        twelve_labs_video_id=indexed.video_id if indexed else task.video_id,
        status=Status.UPLOAD,
        status_history=[
            StatusHistoryEntry(status=Status.UPLOAD, timestamp=now, changed_by=user_id, note="Video uploaded")
        ],
        created_at=now,
        updated_at=now,
        uploaded_at=now,
    )


def _append_status(
    record: AdvertisementRecord,
    status: AdvertisementStatus,
    note: Optional[str],
    changed_by: Optional[str],
) -> None:
    now = utcnow()
    record.status_history.append(
        StatusHistoryEntry(status=status, timestamp=now, changed_by=changed_by, note=note)
    )
    record.status = status
    record.updated_at = now
    if status == Status.ANALYZED:
        record.analyzed_at = now
    elif status in DECIDED_STATUSES:
        record.decided_at = now


def with_status(
    record: AdvertisementRecord,
    status: AdvertisementStatus,
    note: Optional[str] = None,
    changed_by: Optional[str] = None,
) -> AdvertisementRecord:
    if status not in ALLOWED_TRANSITIONS[record.status]:
        raise InvalidTransitionError(
            f"Cannot move advertisement from {record.status.value} to {status.value}"
        )
    if status == Status.ANALYZED:
        results = record.analysis_results
        if not results.has_pipeline_inputs() or results.synthesis is None:
            raise InvalidTransitionError(
                "Advertisement cannot be analyzed without video analysis, user profile, "
                "competitive search and synthesis"
            )
    updated = record.model_copy(deep=True)
    _append_status(updated, status, note, changed_by)
    return updated


def with_analysis_result(record: AdvertisementRecord, **results: Any) -> AdvertisementRecord:
    """Store pipeline step outputs (video_analysis, user_profile, competitive_search)."""
    if "synthesis" in results:
        raise InvalidTransitionError("Synthesis is stored with with_synthesis")
    updated = record.model_copy(deep=True)
    for name, value in results.items():
        setattr(updated.analysis_results, name, value)
    updated.updated_at = utcnow()
    return updated


def with_synthesis(
    record: AdvertisementRecord,
    synthesis: Synthesis,
    note: Optional[str] = None,
) -> AdvertisementRecord:
    """
    Attach the final report.

    From ``analyzing`` this completes the pipeline and moves to ``analyzed``.
    On an ``analyzed`` record it replaces the previous report in place.
    """
    if record.status not in (Status.ANALYZING, Status.ANALYZED):
        raise InvalidTransitionError(
            f"Cannot attach a report to an advertisement in {record.status.value} status"
        )
    if not record.analysis_results.has_pipeline_inputs():
        raise InvalidTransitionError(
            "Advertisement cannot be analyzed without video analysis, user profile "
            "and competitive search"
        )
    updated = record.model_copy(deep=True)
    updated.analysis_results.synthesis = synthesis
    if record.status == Status.ANALYZING:
        _append_status(updated, Status.ANALYZED, note, None)
    else:
        updated.updated_at = utcnow()
    return updated


def with_decision(
    record: AdvertisementRecord,
    decision: DecisionType,
    comments: Optional[str] = None,
    decided_by: Optional[str] = None,
    requested_status: Optional[AdvertisementStatus] = None,
) -> AdvertisementRecord:
    """
    Apply a user decision.

    Repeating the current decision with the same comments returns ``record``
    itself. Any other change keeps the previous decision in
    ``decision_history``.
    """
    target = DECISION_STATUS[decision]
    if requested_status is not None and requested_status != target:
        raise InvalidRequestError(
            f"Status {requested_status.value} does not match decision {decision.value}"
        )
    if target not in ALLOWED_TRANSITIONS[record.status]:
        raise InvalidTransitionError(
            f"Advertisement must be analyzed before a decision (status: {record.status.value})"
        )

    current = record.decision
    if current is not None and current.type == decision and current.comments == comments:
        return record

    updated = record.model_copy(deep=True)
    if updated.decision is not None:
        updated.decision_history.append(updated.decision)
    updated.decision = Decision(type=decision, comments=comments, decided_by=decided_by)
    _append_status(updated, target, comments, decided_by)
    updated.decided_at = updated.decision.decided_at
    return updated


def with_metrics(record: AdvertisementRecord, changes: dict[str, Any]) -> AdvertisementRecord:
    """Merge measured metrics. Keys left out or set to None keep their value."""
    updated = record.model_copy(deep=True)
    merged = (updated.metrics or PerformanceMetrics()).model_dump()
    merged.update({key: value for key, value in changes.items() if value is not None})
    merged["last_updated"] = utcnow()
    updated.metrics = PerformanceMetrics.model_validate(merged)
    updated.updated_at = merged["last_updated"]
    return updated
