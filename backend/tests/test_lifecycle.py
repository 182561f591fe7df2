from __future__ import annotations

import pytest

from adonomics.errors import InvalidRequestError, InvalidTransitionError
from adonomics.lifecycle import (
    new_advertisement,
    with_analysis_result,
    with_decision,
    with_metrics,
    with_status,
    with_synthesis,
)
from adonomics.models import (
    AdvertisementRecord,
    AdvertisementStatus,
    CompetitiveSearch,
    DecisionType,
    IndexedVideo,
    Synthesis,
    TaskHandle,
    UserProfileSummary,
    VideoAnalysis,
    VideoSource,
)
from adonomics.synthesis import fallback_report

Status = AdvertisementStatus


def _uploaded() -> AdvertisementRecord:
    return new_advertisement(
        "u1",
        VideoSource.from_inputs(content=b"bytes", filename="ad.mp4"),
        TaskHandle(task_id="task-1", index_id="index-1"),
        IndexedVideo(task_id="task-1", video_id="v1", final_status="ready"),
    )


def _analyzed() -> AdvertisementRecord:
    record = with_status(_uploaded(), Status.ANALYZING)
    record = with_analysis_result(
        record,
        video_analysis=VideoAnalysis(video_id="v1"),
        user_profile=UserProfileSummary(summary="New user."),
        competitive_search=CompetitiveSearch(),
    )
    return with_synthesis(record, Synthesis(report=fallback_report(), fallback=True))


def _assert_history_consistent(record: AdvertisementRecord) -> None:
    assert record.status_history[-1].status == record.status


def test_new_advertisement_starts_in_upload() -> None:
    record = _uploaded()

    assert record.status == Status.UPLOAD
    assert record.twelve_labs_video_id == "v1"
    assert record.video_filename == "ad.mp4"
    assert record.video_file_size == 5
    assert record.status_history[0].note == "Video uploaded"
    _assert_history_consistent(record)


def test_transitions_return_copies_and_append_history() -> None:
    record = _uploaded()

    analyzing = with_status(record, Status.ANALYZING, note="Analysis started")

    assert record.status == Status.UPLOAD
    assert len(record.status_history) == 1
    assert analyzing.status == Status.ANALYZING
    assert [entry.status for entry in analyzing.status_history] == [Status.UPLOAD, Status.ANALYZING]
    _assert_history_consistent(analyzing)


def test_upload_cannot_skip_to_analyzed_or_a_decision() -> None:
    record = _uploaded()

    with pytest.raises(InvalidTransitionError):
        with_status(record, Status.ANALYZED)
    with pytest.raises(InvalidTransitionError):
        with_decision(record, DecisionType.APPROVE)


def test_analyzed_requires_every_pipeline_output() -> None:
    record = with_status(_uploaded(), Status.ANALYZING)
    record = with_analysis_result(record, video_analysis=VideoAnalysis(video_id="v1"))

    with pytest.raises(InvalidTransitionError):
        with_synthesis(record, Synthesis(report=fallback_report()))
    with pytest.raises(InvalidTransitionError):
        with_analysis_result(record, synthesis=Synthesis(report=fallback_report()))


def test_synthesis_completes_the_pipeline() -> None:
    record = _analyzed()

    assert record.status == Status.ANALYZED
    assert record.analyzed_at is not None
    assert record.analysis_results.synthesis.fallback is True
    _assert_history_consistent(record)


def test_synthesis_on_analyzed_record_replaces_report_without_new_history() -> None:
    record = _analyzed()

    refreshed = with_synthesis(record, Synthesis(report=fallback_report(), fallback=False))

    assert refreshed.status == Status.ANALYZED
    assert refreshed.analysis_results.synthesis.fallback is False
    assert len(refreshed.status_history) == len(record.status_history)


def test_decision_sets_status_and_decided_at() -> None:
    record = with_decision(_analyzed(), DecisionType.APPROVE, "Ship it", decided_by="u1")

    assert record.status == Status.APPROVED
    assert record.decided_at == record.decision.decided_at
    assert record.decision.comments == "Ship it"
    assert record.decision_history == []
    _assert_history_consistent(record)


def test_repeating_the_same_decision_is_a_no_op() -> None:
    approved = with_decision(_analyzed(), DecisionType.APPROVE, "Ship it")

    assert with_decision(approved, DecisionType.APPROVE, "Ship it") is approved


def test_changing_a_decision_keeps_an_audit_trail() -> None:
    approved = with_decision(_analyzed(), DecisionType.APPROVE, "Ship it")

    rejected = with_decision(approved, DecisionType.REJECT, "Legal flagged the claim")

    assert rejected.status == Status.REJECTED
    assert rejected.decision.type == DecisionType.REJECT
    assert [decision.type for decision in rejected.decision_history] == [DecisionType.APPROVE]
    assert [entry.status for entry in rejected.status_history][-2:] == [Status.APPROVED, Status.REJECTED]


def test_decision_with_mismatched_status_is_rejected() -> None:
    with pytest.raises(InvalidRequestError):
        with_decision(_analyzed(), DecisionType.APPROVE, requested_status=Status.REJECTED)


def test_metrics_merge_keeps_unset_values() -> None:
    record = with_metrics(_analyzed(), {"ctr": 2.1, "views": 1000})
    record = with_metrics(record, {"vtr": 55.0, "ctr": None})

    assert record.metrics.ctr == 2.1
    assert record.metrics.views == 1000
    assert record.metrics.vtr == 55.0
    assert record.metrics.last_updated is not None
