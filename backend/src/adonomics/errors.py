"""Error taxonomy shared by the pipeline and the HTTP layer."""

from __future__ import annotations

from typing import Optional


class AdonomicsError(RuntimeError):
    """Base class. ``status_code`` and ``error_code`` drive the HTTP response."""

    status_code: int = 500
    error_code: str = "internal_error"


class ConfigurationError(AdonomicsError):
    """Provider credentials or index id are missing."""

    status_code = 500
    error_code = "configuration_error"


class InvalidRequestError(AdonomicsError):
    status_code = 400
    error_code = "invalid_request"


class NotFoundError(AdonomicsError):
    status_code = 404
    error_code = "not_found"


class ProviderError(AdonomicsError):
    """A remote video-index or language-model call failed."""

    status_code = 502
    error_code = "provider_error"

    def __init__(self, message: str, *, provider_status: Optional[int] = None):
        self.provider_status = provider_status
        super().__init__(message)


class IndexingFailedError(AdonomicsError):
    """The provider reports permanent indexing failure for a task."""

    status_code = 502
    error_code = "indexing_failed"

    def __init__(self, task_id: str, status: str):
        self.task_id = task_id
        self.status = status
        super().__init__(f"Video indexing failed with status: {status}")


class IndexingTimeoutError(AdonomicsError):
    status_code = 504
    error_code = "indexing_timeout"

    def __init__(self, task_id: Optional[str], waited_seconds: float):
        self.task_id = task_id
        self.waited_seconds = waited_seconds
        super().__init__(
            f"Video indexing did not finish within {waited_seconds:.0f} seconds"
        )


class StillIndexingError(AdonomicsError):
    """Expected condition: the video is not ready for analysis yet."""

    status_code = 202
    error_code = "video_not_ready"

    def __init__(self, message: str = "Video is still being indexed. Please try again later.", *, retry_after: int = 900):
        self.retry_after = retry_after
        super().__init__(message)


class SynthesisError(AdonomicsError):
    """Language-model call or parse failure. Recovered by the fallback report."""

    status_code = 500
    error_code = "synthesis_error"


class AlreadyAnalyzedError(AdonomicsError):
    status_code = 400
    error_code = "already_analyzed"


class MissingVideoError(AdonomicsError):
    status_code = 400
    error_code = "missing_video"


class InvalidTransitionError(AdonomicsError):
    status_code = 409
    error_code = "invalid_transition"


class ConcurrentModificationError(AdonomicsError):
    """A version-checked write lost the race against another writer."""

    status_code = 409
    error_code = "concurrent_modification"


class AnalysisInProgressError(AdonomicsError):
    status_code = 409
    error_code = "analysis_in_progress"


class AnalysisFailedError(AdonomicsError):
    status_code = 500
    error_code = "analysis_failed"


__all__ = [
    "AdonomicsError",
    "AlreadyAnalyzedError",
    "AnalysisFailedError",
    "AnalysisInProgressError",
    "ConcurrentModificationError",
    "ConfigurationError",
    "IndexingFailedError",
    "IndexingTimeoutError",
    "InvalidRequestError",
    "InvalidTransitionError",
    "MissingVideoError",
    "NotFoundError",
    "ProviderError",
    "StillIndexingError",
    "SynthesisError",
]
