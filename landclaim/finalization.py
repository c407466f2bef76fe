"""
Draft finalization.

Promotes a draft into a submission in one transaction: lock the draft,
validate its boundary, insert the submission, compute its overlaps, move
its documents, write the first status-history row and set the draft's
finalization marker. Any failure rolls back every write of the call.

The draft row itself is removed afterwards by ``discard_finalized_draft``
in a separate transaction.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, Field

from landclaim.boundary.geojson import to_polygon
from landclaim.boundary.validation import validate_polygon, validate_simple_ring
from landclaim.config import BoundarySettings
from landclaim.errors import DraftAlreadyFinalized, DraftNotFound, LandClaimError
from landclaim.models import INITIAL_STATUS, ActingUser, SubmissionStatus
from landclaim.overlap.engine import OverlapEngine
from landclaim.overlap.models import OverlapResult
from landclaim.store.database import Database, UnitOfWork

logger = logging.getLogger(__name__)


class FinalizationResult(BaseModel):
    """Outcome of a successful finalization."""

    submission_id: int
    status: SubmissionStatus
    overlaps: List[OverlapResult] = Field(default_factory=list)


class DraftFinalizer:
    """
    Promotes drafts into submissions.

    Args:
        database: Connected Database.
        overlap_engine: Engine run inside the finalization transaction.
        settings: Boundary validation policy. Defaults to BoundarySettings().
    """

    def __init__(
        self,
        database: Database,
        overlap_engine: OverlapEngine,
        settings: Optional[BoundarySettings] = None,
    ):
        self._db = database
        self._overlaps = overlap_engine
        self._settings = settings or BoundarySettings()

    async def finalize(self, draft_id: int, acting_user: ActingUser) -> FinalizationResult:
        """
        Promote a draft owned by ``acting_user`` into a submission.

        Two concurrent calls for the same draft serialize on the draft row
        lock; the second one fails with DraftAlreadyFinalized.

        Returns:
            FinalizationResult with the new submission id, its status and
            the computed overlaps.

        Raises:
            DraftNotFound: No such draft for this user.
            DraftAlreadyFinalized: The draft was already promoted.
            DraftIncomplete: Applicant name or NIK missing, or malformed payload.
            PolygonInvariantViolation: The boundary is not an acceptable polygon.
            SpatialQueryFailure: Overlap computation failed or timed out.
        """
        try:
            result = await self._db.with_transaction(
                lambda uow: self._finalize_in(uow, draft_id, acting_user)
            )
        except LandClaimError as e:
            logger.warning(
                "Finalization of draft %s by user %s rejected: %s (%s)",
                draft_id,
                acting_user.id,
                e.message,
                e.code.value,
            )
            raise
        except Exception:
            logger.error(
                "Finalization of draft %s by user %s rolled back",
                draft_id,
                acting_user.id,
                exc_info=True,
            )
            raise

        logger.info(
            "Draft %s finalized as submission %s by %s (%s, %d overlaps)",
            draft_id,
            result.submission_id,
            acting_user.name,
            acting_user.role.value,
            len(result.overlaps),
        )
        return result

    async def _finalize_in(
        self, uow: UnitOfWork, draft_id: int, acting_user: ActingUser
    ) -> FinalizationResult:
        draft = await uow.drafts.get_for_update(draft_id, acting_user.id)
        if draft is None:
            raise DraftNotFound(f"Draft {draft_id} tidak ditemukan", draft_id=draft_id)
        if draft.is_finalized:
            raise DraftAlreadyFinalized(draft_id, draft.finalized_submission_id)

        finalizable = draft.payload.to_finalizable()
        if finalizable.village_id is None:
            finalizable.village_id = draft.village_id

        points = finalizable.coordinates
        validate_polygon(
            points,
            min_vertices=self._settings.min_vertices,
            max_vertices=self._settings.max_vertices,
        )
        if self._settings.reject_self_intersection:
            validate_simple_ring(points)

        submission = await uow.submissions.insert(
            acting_user.id, finalizable, to_polygon(points)
        )
        overlaps = await self._overlaps.compute_overlaps(uow.conn, submission.id)
        await uow.documents.attach_to_submission(draft_id, submission.id)
        await uow.submissions.append_status_history(
            submission.id,
            None,
            INITIAL_STATUS,
            acting_user.id,
            reason="Pengajuan dibuat dari draft",
        )
        await uow.drafts.mark_finalized(draft_id, submission.id)

        return FinalizationResult(
            submission_id=submission.id,
            status=submission.status,
            overlaps=overlaps,
        )


async def discard_finalized_draft(
    database: Database, draft_id: int, acting_user: ActingUser
) -> bool:
    """
    Delete a draft after its finalization committed.

    Only drafts carrying the finalization marker are deleted.

    Returns:
        Whether the draft was deleted.
    """
    async with database.transaction() as uow:
        deleted = await uow.drafts.delete_finalized(draft_id, acting_user.id)
    if deleted:
        logger.info("Discarded finalized draft %s", draft_id)
    else:
        logger.warning("Draft %s not discarded: missing or not finalized", draft_id)
    return deleted
