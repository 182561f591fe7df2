"""
Re-run profile, competitive search and synthesis for analyzed advertisements.

The stored video analysis is reused and the status stays ``analyzed``.

Usage: python backend/scripts/reanalyze_advertisements.py [--user-id <id>]
"""
import argparse
import asyncio
import os
import sys

# Add backend/src to path
sys.path.append(os.path.join(os.path.dirname(os.path.abspath(__file__)), "..", "src"))

from adonomics.config import Config
from adonomics.db import Base, get_engine, get_session_factory
from adonomics.errors import AdonomicsError
from adonomics.llm import LanguageModelClient
from adonomics.logging_utils import configure_logging
from adonomics.models import AdvertisementStatus
from adonomics.orchestrator import AnalysisOrchestrator
from adonomics.repository import AdvertisementRepository
from adonomics.synthesis import ReportSynthesizer
from adonomics.video_index import VideoIndexClient


async def reanalyze(user_id=None) -> int:
    config = Config.from_env()
    configure_logging(config.log_level)
    Base.metadata.create_all(bind=get_engine(config))

    repository = AdvertisementRepository(get_session_factory(config))
    orchestrator = AnalysisOrchestrator(
        config=config,
        repository=repository,
        video_index=VideoIndexClient(config),
        synthesizer=ReportSynthesizer(LanguageModelClient(config)),
    )

    records = repository.list(status=AdvertisementStatus.ANALYZED, user_id=user_id)
    print(f"Found {len(records)} analyzed advertisements")

    failures = 0
    for record in records:
        label = record.video_filename or record.video_url or record.id
        print(f"Re-analyzing {label} (video {record.twelve_labs_video_id})")
        try:
            updated = await orchestrator.reanalyze(record.id)
        except AdonomicsError as exc:
            failures += 1
            print(f"   Failed: {exc}")
            continue
        report = updated.analysis_results.synthesis.report
        fallback = " (fallback report)" if updated.analysis_results.synthesis.fallback else ""
        print(
            f"   confidence={report.success_prediction.confidence_score} "
            f"suggestion={report.personalized_recommendations.decision_suggestion}{fallback}"
        )
    return failures


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--user-id", default=None)
    args = parser.parse_args()

    failures = asyncio.run(reanalyze(args.user_id))
    if failures:
        sys.exit(1)


if __name__ == "__main__":
    main()
