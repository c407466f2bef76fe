"""
Submission repository.

Submissions are immutable after creation except for their status, which
moves only through ``transition_status``: a conditional UPDATE ... RETURNING
plus a status_history row in the same transaction.
"""

import json
import logging
from typing import Any, Dict, List, Optional

import asyncpg

from landclaim.drafts.models import FinalizableDraft
from landclaim.errors import StatusConflict, SubmissionNotFound
from landclaim.models import (
    INITIAL_STATUS,
    StatusHistoryEntry,
    Submission,
    SubmissionStatus,
)
from landclaim.store.rows import decode_json

logger = logging.getLogger(__name__)

_SELECT_COLS = """
    id, owner_id, nama_pemilik, nik, alamat, nomor_hp, email, village_id,
    kecamatan, kabupaten, luas, penggunaan_lahan, catatan, geo_json,
    status::text AS status, verifikator, created_at
"""

_HISTORY_COLS = """
    id, submission_id, status_before::text AS status_before,
    status_after::text AS status_after, actor_id, reason, feedback, recorded_at
"""


def _row_to_submission(row: asyncpg.Record) -> Submission:
    """Convert a submissions row to a Submission."""
    return Submission(
        id=row["id"],
        owner_id=row["owner_id"],
        nama_pemilik=row["nama_pemilik"],
        nik=row["nik"],
        alamat=row["alamat"],
        nomor_hp=row["nomor_hp"],
        email=row["email"],
        village_id=row["village_id"],
        kecamatan=row["kecamatan"],
        kabupaten=row["kabupaten"],
        luas=row["luas"],
        penggunaan_lahan=row["penggunaan_lahan"],
        catatan=row["catatan"],
        geo_json=decode_json(row["geo_json"]),
        status=SubmissionStatus(row["status"]),
        verifikator=row["verifikator"],
        created_at=row["created_at"],
    )


def _row_to_history(row: asyncpg.Record) -> StatusHistoryEntry:
    """Convert a status_history row to a StatusHistoryEntry."""
    return StatusHistoryEntry(
        id=row["id"],
        submission_id=row["submission_id"],
        status_before=row["status_before"],
        status_after=row["status_after"],
        actor_id=row["actor_id"],
        reason=row["reason"],
        feedback=decode_json(row["feedback"]),
        recorded_at=row["recorded_at"],
    )


class SubmissionRepository:
    """Writes and reads for ``submissions`` and ``status_history``."""

    def __init__(self, conn: asyncpg.Connection):
        self._conn = conn

    async def insert(
        self,
        owner_id: int,
        draft: FinalizableDraft,
        polygon: Dict[str, Any],
    ) -> Submission:
        """
        Insert a submission in the initial status.

        The stored geometry and the display GeoJSON are both built from
        ``polygon``. When the draft declares no area, ``luas`` is the
        geodesic area of the polygon in square metres.

        Args:
            owner_id: Submitting user.
            draft: Validated draft fields.
            polygon: Closed GeoJSON Polygon.

        Returns:
            The inserted Submission.
        """
        polygon_json = json.dumps(polygon)
        row = await self._conn.fetchrow(
            f"""
            WITH shape AS (
                SELECT ST_SetSRID(ST_GeomFromGeoJSON($11::text), 4326) AS geom
            )
            INSERT INTO submissions
                (owner_id, nama_pemilik, nik, alamat, nomor_hp, email,
                 village_id, kecamatan, kabupaten, luas, penggunaan_lahan,
                 catatan, geom, geo_json, status)
            SELECT $1, $2, $3, $4, $5, $6, $7, $8, $9,
                   COALESCE($10, ST_Area(shape.geom::geography)),
                   $12, $13, shape.geom, $14::jsonb, $15::submission_status
            FROM shape
            RETURNING {_SELECT_COLS}
            """,
            owner_id,
            draft.nama_pemohon,
            draft.nik,
            draft.alamat,
            draft.nomor_hp,
            draft.email,
            draft.village_id,
            draft.kecamatan,
            draft.kabupaten,
            draft.luas,
            polygon_json,
            draft.penggunaan_lahan,
            draft.catatan,
            polygon_json,
            INITIAL_STATUS.value,
        )
        return _row_to_submission(row)

    async def get(self, submission_id: int) -> Optional[Submission]:
        """Fetch a submission by id, or None."""
        row = await self._conn.fetchrow(
            f"SELECT {_SELECT_COLS} FROM submissions WHERE id = $1",
            submission_id,
        )
        if row is None:
            return None
        return _row_to_submission(row)

    async def append_status_history(
        self,
        submission_id: int,
        status_before: Optional[SubmissionStatus],
        status_after: SubmissionStatus,
        actor_id: int,
        *,
        reason: Optional[str] = None,
        feedback: Optional[Dict[str, Any]] = None,
    ) -> StatusHistoryEntry:
        """Append one audit row. ``status_before`` is None for creation."""
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO status_history
                (submission_id, status_before, status_after, actor_id, reason, feedback)
            VALUES ($1, $2::submission_status, $3::submission_status, $4, $5, $6::jsonb)
            RETURNING {_HISTORY_COLS}
            """,
            submission_id,
            status_before.value if status_before is not None else None,
            status_after.value,
            actor_id,
            reason,
            json.dumps(feedback) if feedback is not None else None,
        )
        return _row_to_history(row)

    async def list_status_history(self, submission_id: int) -> List[StatusHistoryEntry]:
        """Audit rows of a submission, oldest first."""
        rows = await self._conn.fetch(
            f"""
            SELECT {_HISTORY_COLS} FROM status_history
            WHERE submission_id = $1
            ORDER BY recorded_at, id
            """,
            submission_id,
        )
        return [_row_to_history(r) for r in rows]

    async def transition_status(
        self,
        submission_id: int,
        expected: SubmissionStatus,
        new: SubmissionStatus,
        actor_id: int,
        *,
        reason: Optional[str] = None,
        feedback: Optional[Dict[str, Any]] = None,
    ) -> Submission:
        """
        Move a submission from ``expected`` to ``new`` and log it.

        Uses a conditional UPDATE ... RETURNING so a concurrent change
        between read and write is detected rather than overwritten.

        Raises:
            SubmissionNotFound: No such submission.
            StatusConflict: The stored status is not ``expected``.
        """
        row = await self._conn.fetchrow(
            f"""
            UPDATE submissions
            SET status = $2::submission_status, updated_at = now()
            WHERE id = $1 AND status = $3::submission_status
            RETURNING {_SELECT_COLS}
            """,
            submission_id,
            new.value,
            expected.value,
        )

        if row is None:
            current = await self._conn.fetchrow(
                "SELECT status::text AS status FROM submissions WHERE id = $1",
                submission_id,
            )
            if current is None:
                raise SubmissionNotFound(submission_id)
            raise StatusConflict(
                submission_id=submission_id,
                expected=expected.value,
                actual=current["status"],
            )

        await self.append_status_history(
            submission_id, expected, new, actor_id, reason=reason, feedback=feedback
        )
        logger.info(
            "Submission %s: %s -> %s by user %s",
            submission_id,
            expected.value,
            new.value,
            actor_id,
        )
        return _row_to_submission(row)
