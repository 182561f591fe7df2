"""
Advertisement persistence.

Records go in and out as ``AdvertisementRecord`` values. Every write is a
compare-and-set on the ``version`` column, so two writers that read the
same version cannot both succeed.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.orm import sessionmaker

from adonomics.db import crud
from adonomics.db.models import Advertisement
from adonomics.errors import ConcurrentModificationError, NotFoundError
from adonomics.models import (
    AdvertisementRecord,
    AdvertisementStatus,
    BenchmarkExample,
    BenchmarkSummary,
    UserPreferences,
)

logger = logging.getLogger(__name__)

BENCHMARK_LIMIT = 10
_BENCHMARK_METRICS = ("ctr", "vtr", "conversion_rate", "completion_rate", "engagement_score", "roas")

_JSON_FIELDS = ("tags", "status_history", "analysis_results", "decision", "decision_history", "metrics")


def _row_values(record: AdvertisementRecord) -> dict[str, Any]:
    data = record.model_dump(mode="json")
    values = {name: data[name] for name in _JSON_FIELDS}
    for name in (
        "user_id",
        "video_filename",
        "video_file_size",
        "video_url",
        "title",
        "description",
        "twelve_labs_index_id",
        "twelve_labs_task_id",
        "twelve_labs_video_id",
        "created_at",
        "updated_at",
        "uploaded_at",
        "analyzed_at",
        "decided_at",
    ):
        values[name] = getattr(record, name)
    values["status"] = record.status.value
    return values


def _to_record(row: Advertisement) -> AdvertisementRecord:
    return AdvertisementRecord.model_validate(
        {
            "id": row.id,
            "user_id": row.user_id,
            "video_filename": row.video_filename,
            "video_file_size": row.video_file_size,
            "video_url": row.video_url,
            "title": row.title,
            "description": row.description,
            "tags": row.tags or [],
            "twelve_labs_index_id": row.twelve_labs_index_id,
            "twelve_labs_task_id": row.twelve_labs_task_id,
            "twelve_labs_video_id": row.twelve_labs_video_id,
            "status": row.status,
            "status_history": row.status_history or [],
            "analysis_results": row.analysis_results or {},
            "decision": row.decision,
            "decision_history": row.decision_history or [],
            "metrics": row.metrics,
            "created_at": row.created_at,
            "updated_at": row.updated_at,
            "uploaded_at": row.uploaded_at,
            "analyzed_at": row.analyzed_at,
            "decided_at": row.decided_at,
            "version": row.version,
        }
    )


class AdvertisementRepository:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def create(self, record: AdvertisementRecord) -> AdvertisementRecord:
        with self._session_factory() as db:
            row = Advertisement(id=record.id, version=record.version, **_row_values(record))
            db.add(row)
            db.commit()
            db.refresh(row)
            return _to_record(row)

    def get(self, advertisement_id: str) -> Optional[AdvertisementRecord]:
        with self._session_factory() as db:
            row = db.get(Advertisement, advertisement_id)
            return _to_record(row) if row else None

    def require(self, advertisement_id: str) -> AdvertisementRecord:
        record = self.get(advertisement_id)
        if record is None:
            raise NotFoundError("Advertisement not found")
        return record

    def save(self, record: AdvertisementRecord) -> AdvertisementRecord:
        """
        Write ``record`` if the stored version still equals ``record.version``.

        Returns the record with its new version.
        """
        with self._session_factory() as db:
            result = db.execute(
                update(Advertisement)
                .where(Advertisement.id == record.id)
                .where(Advertisement.version == record.version)
                .values(version=record.version + 1, **_row_values(record))
            )
            db.commit()
            if result.rowcount == 0:
                if db.get(Advertisement, record.id) is None:
                    raise NotFoundError("Advertisement not found")
                raise ConcurrentModificationError(
                    f"Advertisement {record.id} was modified by another request"
                )
        return record.model_copy(update={"version": record.version + 1})

    def list(
        self,
        status: Optional[AdvertisementStatus] = None,
        user_id: Optional[str] = None,
    ) -> list[AdvertisementRecord]:
        with self._session_factory() as db:
            query = db.query(Advertisement)
            if status is not None:
                query = query.filter(Advertisement.status == status.value)
            if user_id:
                query = query.filter(Advertisement.user_id == user_id)
            rows = query.order_by(Advertisement.updated_at.desc()).all()
            return [_to_record(row) for row in rows]

    def find_by_video_id(self, video_id: str) -> Optional[AdvertisementRecord]:
        with self._session_factory() as db:
            row = (
                db.query(Advertisement)
                .filter(Advertisement.twelve_labs_video_id == video_id)
                .first()
            )
            return _to_record(row) if row else None

    def benchmark_summary(self, limit: int = BENCHMARK_LIMIT) -> BenchmarkSummary:
        """Averages over the most recently updated approved ads with metrics."""
        with self._session_factory() as db:
            rows = (
                db.query(Advertisement)
                .filter(Advertisement.status == AdvertisementStatus.APPROVED.value)
                .filter(Advertisement.metrics.isnot(None))
                .order_by(Advertisement.updated_at.desc())
                .limit(limit)
                .all()
            )
            records = [_to_record(row) for row in rows]

        measured = [record for record in records if record.metrics is not None]
        if not measured:
            return BenchmarkSummary()

        averages = {}
        for name in _BENCHMARK_METRICS:
            total = sum(getattr(record.metrics, name) or 0.0 for record in measured)
            averages[name] = total / len(measured)
        examples = [
            BenchmarkExample(
                title=record.title or record.video_filename,
                ctr=record.metrics.ctr,
                vtr=record.metrics.vtr,
                conversion_rate=record.metrics.conversion_rate,
            )
            for record in measured
        ]
        return BenchmarkSummary(sample_size=len(measured), examples=examples, **averages)

    def get_preferences(self, user_id: str) -> Optional[UserPreferences]:
        with self._session_factory() as db:
            row = crud.get_preferences(db, user_id)
            return crud.to_user_preferences(row) if row else None
