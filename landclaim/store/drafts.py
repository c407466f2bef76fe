"""
Draft repository.

Operates on the connection of the enclosing UnitOfWork; every method runs
inside that unit's transaction, so ``FOR UPDATE`` locks are held until it
commits or rolls back.
"""

import json
import logging
from typing import List, Optional, Union

import asyncpg

from landclaim.drafts.models import (
    DraftPayload,
    Step1Update,
    Step2Update,
    Step3Update,
    Step4Update,
    SubmissionDraft,
)
from landclaim.errors import DraftAlreadyFinalized, DraftNotFound, FinalizationConflict
from landclaim.store.rows import decode_json

logger = logging.getLogger(__name__)

_SELECT_COLS = """
    id, owner_id, current_step, payload, village_id,
    last_saved, finalized_submission_id
"""


def _row_to_draft(row: asyncpg.Record) -> SubmissionDraft:
    """Convert a submission_drafts row to a SubmissionDraft."""
    return SubmissionDraft(
        id=row["id"],
        owner_id=row["owner_id"],
        current_step=row["current_step"],
        payload=DraftPayload.from_stored(decode_json(row["payload"])),
        village_id=row["village_id"],
        last_saved=row["last_saved"],
        finalized_submission_id=row["finalized_submission_id"],
    )


def _affected_rows(status: str) -> int:
    """Row count from an asyncpg command status such as ``'DELETE 1'``."""
    return int(status.split()[-1])


class DraftRepository:
    """CRUD and locking for ``submission_drafts``."""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def create(
        self,
        owner_id: int,
        *,
        village_id: Optional[int] = None,
        payload: Optional[DraftPayload] = None,
    ) -> SubmissionDraft:
        """Start a new draft at step 1."""
        payload = payload or DraftPayload(current_step=1)
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO submission_drafts (owner_id, current_step, payload, village_id)
            VALUES ($1, 1, $2::jsonb, $3)
            RETURNING {_SELECT_COLS}
            """,
            owner_id,
            json.dumps(payload.to_json()),
            village_id,
        )
        logger.info("Created draft %s for user %s", row["id"], owner_id)
        return _row_to_draft(row)

    async def get(self, draft_id: int, owner_id: int) -> Optional[SubmissionDraft]:
        """Fetch a draft owned by ``owner_id``, or None."""
        row = await self._conn.fetchrow(
            f"SELECT {_SELECT_COLS} FROM submission_drafts WHERE id = $1 AND owner_id = $2",
            draft_id,
            owner_id,
        )
        if row is None:
            return None
        return _row_to_draft(row)

    async def get_for_update(self, draft_id: int, owner_id: int) -> Optional[SubmissionDraft]:
        """
        Fetch and row-lock a draft owned by ``owner_id``.

        A concurrent caller blocks here until the holder's transaction ends,
        then sees the committed row (or no row if it was deleted).
        """
        row = await self._conn.fetchrow(
            f"""
            SELECT {_SELECT_COLS} FROM submission_drafts
            WHERE id = $1 AND owner_id = $2
            FOR UPDATE
            """,
            draft_id,
            owner_id,
        )
        if row is None:
            return None
        return _row_to_draft(row)

    async def save_step(
        self,
        draft_id: int,
        owner_id: int,
        update: Union[Step1Update, Step2Update, Step3Update, Step4Update],
    ) -> SubmissionDraft:
        """
        Merge one step's data into the draft payload.

        Raises:
            DraftNotFound: No such draft for this owner.
            DraftAlreadyFinalized: The draft was already promoted.
        """
        draft = await self.get_for_update(draft_id, owner_id)
        if draft is None:
            raise DraftNotFound(f"Draft {draft_id} tidak ditemukan", draft_id=draft_id)
        if draft.is_finalized:
            raise DraftAlreadyFinalized(draft_id, draft.finalized_submission_id)

        merged = draft.payload.merge(update)
        village_id = merged.village_id if merged.village_id is not None else draft.village_id

        row = await self._conn.fetchrow(
            f"""
            UPDATE submission_drafts
            SET payload = $2::jsonb, current_step = $3, village_id = $4, last_saved = now()
            WHERE id = $1
            RETURNING {_SELECT_COLS}
            """,
            draft_id,
            json.dumps(merged.to_json()),
            update.current_step,
            village_id,
        )
        logger.debug("Saved step %s of draft %s", update.current_step, draft_id)
        return _row_to_draft(row)

    async def list_for_owner(self, owner_id: int, *, limit: int = 50) -> List[SubmissionDraft]:
        """Unfinalized drafts of a user, most recently saved first."""
        rows = await self._conn.fetch(
            f"""
            SELECT {_SELECT_COLS} FROM submission_drafts
            WHERE owner_id = $1 AND finalized_submission_id IS NULL
            ORDER BY last_saved DESC
            LIMIT $2
            """,
            owner_id,
            limit,
        )
        return [_row_to_draft(r) for r in rows]

    async def delete(self, draft_id: int, owner_id: int) -> bool:
        """Delete an unfinalized draft. Returns whether a row was removed."""
        status = await self._conn.execute(
            """
            DELETE FROM submission_drafts
            WHERE id = $1 AND owner_id = $2 AND finalized_submission_id IS NULL
            """,
            draft_id,
            owner_id,
        )
        return _affected_rows(status) > 0

    async def mark_finalized(self, draft_id: int, submission_id: int) -> None:
        """
        Set the finalization marker.

        Raises:
            FinalizationConflict: The marker was already set.
        """
        row = await self._conn.fetchrow(
            """
            UPDATE submission_drafts
            SET finalized_submission_id = $2, last_saved = now()
            WHERE id = $1 AND finalized_submission_id IS NULL
            RETURNING id
            """,
            draft_id,
            submission_id,
        )
        if row is None:
            raise FinalizationConflict(
                f"Draft {draft_id} sudah difinalisasi", draft_id=draft_id
            )

    async def delete_finalized(self, draft_id: int, owner_id: int) -> bool:
        """Delete a draft whose marker is set. Returns whether a row was removed."""
        status = await self._conn.execute(
            """
            DELETE FROM submission_drafts
            WHERE id = $1 AND owner_id = $2 AND finalized_submission_id IS NOT NULL
            """,
            draft_id,
            owner_id,
        )
        return _affected_rows(status) > 0
