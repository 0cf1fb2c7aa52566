"""
Bulk Import Orchestrator
Feeds parsed candidates through the upsert pipeline one by one

Best-effort: a failing candidate is recorded in the summary and the batch
moves on. Partial success is the normal outcome for pasted lists.
"""
import logging
from typing import Iterable

from app.models.schemas.handles import CandidateRecord, HandleSubmission, ImportSummary
from app.services.directory.upsert import UpsertPipeline

logger = logging.getLogger(__name__)


class BulkImporter:
    """Imports CandidateRecords on behalf of one contributor."""

    def __init__(self, pipeline: UpsertPipeline):
        self.pipeline = pipeline

    async def import_candidates(
        self,
        candidates: Iterable[CandidateRecord],
        contributor_id: str
    ) -> ImportSummary:
        """
        Upsert every candidate in input order.

        Args:
            candidates: Parser output
            contributor_id: Who submitted the batch

        Returns:
            ImportSummary with created/updated counts and one error line per failure
        """
        summary = ImportSummary()

        for candidate in candidates:
            summary.total += 1
            try:
                submission = HandleSubmission(
                    platform=candidate.platform,
                    handle=candidate.raw_handle,
                    name=candidate.candidate_name,
                    contributor_id=contributor_id,
                )
                _, created = await self.pipeline.upsert_with_outcome(submission)
            except Exception as e:
                logger.error(f"Failed to import {candidate.original_input_line!r}: {e}", exc_info=True)
                summary.failed += 1
                summary.errors.append(f"Error importing {candidate.original_input_line!r}: {e}")
                continue

            summary.succeeded += 1
            if created:
                summary.created += 1
            else:
                summary.updated += 1

        logger.info(
            f"Bulk import by {contributor_id}: {summary.succeeded}/{summary.total} succeeded "
            f"({summary.created} created, {summary.updated} updated, {summary.failed} failed)"
        )
        return summary
