"""
Document repository.

Only document rows are touched here; file bytes live in external storage
and never move.
"""

import logging
from typing import List, Optional

import asyncpg

from landclaim.models import SubmissionDocument

logger = logging.getLogger(__name__)

_SELECT_COLS = "id, draft_id, submission_id, filename, category, is_temporary"


def _row_to_document(row: asyncpg.Record) -> SubmissionDocument:
    return SubmissionDocument(
        id=row["id"],
        draft_id=row["draft_id"],
        submission_id=row["submission_id"],
        filename=row["filename"],
        category=row["category"],
        is_temporary=row["is_temporary"],
    )


class DocumentRepository:
    """Reads and re-pointing for ``submissions_documents``."""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def add_to_draft(
        self,
        draft_id: int,
        filename: str,
        category: str,
        *,
        file_type: str = "",
        size: int = 0,
        url: str = "",
        uploaded_by: Optional[int] = None,
    ) -> SubmissionDocument:
        """Register an uploaded file as a temporary draft document."""
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO submissions_documents
                (draft_id, filename, file_type, size, url, category, uploaded_by, is_temporary)
            VALUES ($1, $2, $3, $4, $5, $6, $7, TRUE)
            RETURNING {_SELECT_COLS}
            """,
            draft_id,
            filename,
            file_type,
            size,
            url or None,
            category,
            uploaded_by,
        )
        return _row_to_document(row)

    async def list_by_draft(self, draft_id: int) -> List[SubmissionDocument]:
        rows = await self._conn.fetch(
            f"SELECT {_SELECT_COLS} FROM submissions_documents WHERE draft_id = $1 ORDER BY id",
            draft_id,
        )
        return [_row_to_document(r) for r in rows]

    async def list_by_submission(self, submission_id: int) -> List[SubmissionDocument]:
        rows = await self._conn.fetch(
            f"SELECT {_SELECT_COLS} FROM submissions_documents WHERE submission_id = $1 ORDER BY id",
            submission_id,
        )
        return [_row_to_document(r) for r in rows]

    async def attach_to_submission(self, draft_id: int, submission_id: int) -> int:
        """
        Re-point every document of a draft to a submission and make it permanent.

        Returns:
            Number of documents moved.
        """
        rows = await self._conn.fetch(
            """
            UPDATE submissions_documents
            SET submission_id = $2, is_temporary = FALSE
            WHERE draft_id = $1
            RETURNING id
            """,
            draft_id,
            submission_id,
        )
        logger.debug(
            "Attached %d documents of draft %s to submission %s",
            len(rows),
            draft_id,
            submission_id,
        )
        return len(rows)
