"""
Tests for the store layer.

These tests use mock asyncpg connections and pools to verify SQL flow and
error mapping without a live PostGIS instance.
"""

import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from landclaim.config import DatabaseSettings
from landclaim.drafts.models import parse_step_update
from landclaim.errors import (
    DraftAlreadyFinalized,
    DraftNotFound,
    FinalizationConflict,
    StatusConflict,
    SubmissionNotFound,
)
from landclaim.models import ProhibitedAreaType, SubmissionStatus
from landclaim.store.database import Database, UnitOfWork
from landclaim.store.documents import DocumentRepository
from landclaim.store.drafts import DraftRepository
from landclaim.store.prohibited_areas import ProhibitedAreaRepository
from landclaim.store.submissions import SubmissionRepository


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

NOW = datetime.now(timezone.utc)


def _draft_row(payload=None, finalized=None, step=1):
    return {
        "id": 5,
        "owner_id": 7,
        "current_step": step,
        "payload": json.dumps(payload or {}),
        "village_id": None,
        "last_saved": NOW,
        "finalized_submission_id": finalized,
    }


def _submission_row(status="SPPTG terdaftar"):
    return {
        "id": 40,
        "owner_id": 7,
        "nama_pemilik": "Siti Aminah",
        "nik": "3201234567890123",
        "alamat": "",
        "nomor_hp": "",
        "email": "",
        "village_id": 12,
        "kecamatan": "",
        "kabupaten": "",
        "luas": 1000.0,
        "penggunaan_lahan": "",
        "catatan": None,
        "geo_json": json.dumps({"type": "Polygon", "coordinates": []}),
        "status": status,
        "verifikator": None,
        "created_at": NOW,
    }


def _history_row():
    return {
        "id": 1,
        "submission_id": 40,
        "status_before": "SPPTG terdata",
        "status_after": "SPPTG terdaftar",
        "actor_id": 9,
        "reason": None,
        "feedback": None,
        "recorded_at": NOW,
    }


STEP1 = {
    "currentStep": 1,
    "payload": {"namaPemohon": "Siti Aminah", "nik": "3201234567890123", "persetujuanData": True},
}


# ---------------------------------------------------------------------------
# Drafts
# ---------------------------------------------------------------------------


class TestDraftRepository:

    @pytest.mark.asyncio
    async def test_get_for_update_uses_row_lock(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=_draft_row({"namaPemohon": "Siti"}))

        draft = await DraftRepository(conn).get_for_update(5, 7)

        assert "FOR UPDATE" in conn.fetchrow.call_args.args[0]
        assert conn.fetchrow.call_args.args[1:] == (5, 7)
        assert draft.payload.nama_pemohon == "Siti"

    @pytest.mark.asyncio
    async def test_save_step_writes_merged_payload(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(
            side_effect=[
                _draft_row({"catatan": "lama"}),
                _draft_row({"catatan": "lama", "namaPemohon": "Siti Aminah"}),
            ]
        )

        saved = await DraftRepository(conn).save_step(5, 7, parse_step_update(STEP1))

        update_call = conn.fetchrow.call_args_list[1]
        written = json.loads(update_call.args[2])
        assert written["catatan"] == "lama"
        assert written["namaPemohon"] == "Siti Aminah"
        assert written["currentStep"] == 1
        assert update_call.args[3] == 1
        assert saved.payload.nama_pemohon == "Siti Aminah"

    @pytest.mark.asyncio
    async def test_save_step_missing_draft(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=None)
        with pytest.raises(DraftNotFound):
            await DraftRepository(conn).save_step(5, 7, parse_step_update(STEP1))

    @pytest.mark.asyncio
    async def test_save_step_on_finalized_draft(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=_draft_row(finalized=40))
        with pytest.raises(DraftAlreadyFinalized):
            await DraftRepository(conn).save_step(5, 7, parse_step_update(STEP1))
        assert conn.fetchrow.await_count == 1

    @pytest.mark.asyncio
    async def test_mark_finalized_is_conditional(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=None)
        with pytest.raises(FinalizationConflict):
            await DraftRepository(conn).mark_finalized(5, 40)
        assert "finalized_submission_id IS NULL" in conn.fetchrow.call_args.args[0]

    @pytest.mark.asyncio
    async def test_delete_reports_row_count(self):
        conn = MagicMock()
        conn.execute = AsyncMock(return_value="DELETE 1")
        assert await DraftRepository(conn).delete(5, 7) is True

        conn.execute = AsyncMock(return_value="DELETE 0")
        assert await DraftRepository(conn).delete_finalized(5, 7) is False


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------


class TestSubmissionRepository:

    @pytest.mark.asyncio
    async def test_transition_success_appends_history(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(side_effect=[_submission_row(), _history_row()])

        submission = await SubmissionRepository(conn).transition_status(
            40, SubmissionStatus.RECORDED, SubmissionStatus.REGISTERED, 9
        )

        assert submission.status is SubmissionStatus.REGISTERED
        update_sql = conn.fetchrow.call_args_list[0].args[0]
        assert "WHERE id = $1 AND status = $3" in update_sql
        history_args = conn.fetchrow.call_args_list[1].args
        assert history_args[1:5] == (40, "SPPTG terdata", "SPPTG terdaftar", 9)

    @pytest.mark.asyncio
    async def test_transition_conflict(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(side_effect=[None, {"status": "SPPTG ditolak"}])

        with pytest.raises(StatusConflict) as exc_info:
            await SubmissionRepository(conn).transition_status(
                40, SubmissionStatus.RECORDED, SubmissionStatus.REGISTERED, 9
            )
        assert exc_info.value.expected == "SPPTG terdata"
        assert exc_info.value.actual == "SPPTG ditolak"

    @pytest.mark.asyncio
    async def test_transition_missing_submission(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(side_effect=[None, None])
        with pytest.raises(SubmissionNotFound):
            await SubmissionRepository(conn).transition_status(
                40, SubmissionStatus.RECORDED, SubmissionStatus.REGISTERED, 9
            )

    @pytest.mark.asyncio
    async def test_get_decodes_geo_json(self):
        conn = MagicMock()
        conn.fetchrow = AsyncMock(return_value=_submission_row("SPPTG terdata"))
        submission = await SubmissionRepository(conn).get(40)
        assert submission.geo_json["type"] == "Polygon"
        assert submission.status is SubmissionStatus.RECORDED


# ---------------------------------------------------------------------------
# Documents and prohibited areas
# ---------------------------------------------------------------------------


class TestDocumentRepository:

    @pytest.mark.asyncio
    async def test_list_by_draft(self):
        conn = MagicMock()
        conn.fetch = AsyncMock(
            return_value=[
                {
                    "id": 3,
                    "draft_id": 5,
                    "submission_id": None,
                    "filename": "ktp.pdf",
                    "category": "dokumenKTP",
                    "is_temporary": True,
                }
            ]
        )

        docs = await DocumentRepository(conn).list_by_draft(5)

        assert conn.fetch.call_args.args[1] == 5
        assert [d.filename for d in docs] == ["ktp.pdf"]
        assert docs[0].is_temporary

    @pytest.mark.asyncio
    async def test_attach_returns_moved_count(self):
        conn = MagicMock()
        conn.fetch = AsyncMock(return_value=[{"id": 3}, {"id": 4}])

        moved = await DocumentRepository(conn).attach_to_submission(5, 40)

        assert moved == 2
        assert "is_temporary = FALSE" in conn.fetch.call_args.args[0]


class TestProhibitedAreaRepository:

    @pytest.mark.asyncio
    async def test_list_active_filters_and_decodes(self):
        conn = MagicMock()
        conn.fetch = AsyncMock(
            return_value=[
                {
                    "id": 1,
                    "nama_kawasan": "Hutan Lindung Ungaran",
                    "jenis_kawasan": "Hutan Lindung",
                    "sumber_data": "KLHK",
                    "dasar_hukum": None,
                    "geometry": json.dumps({"type": "Polygon", "coordinates": []}),
                    "aktif_di_validasi": True,
                }
            ]
        )

        areas = await ProhibitedAreaRepository(conn).list_active()

        assert "WHERE aktif_di_validasi" in conn.fetch.call_args.args[0]
        assert areas[0].jenis_kawasan is ProhibitedAreaType.PROTECTED_FOREST
        assert areas[0].geometry["type"] == "Polygon"


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


def _mock_pool(conn) -> MagicMock:
    acquire_cm = MagicMock()
    acquire_cm.__aenter__ = AsyncMock(return_value=conn)
    acquire_cm.__aexit__ = AsyncMock(return_value=False)
    pool = MagicMock()
    pool.acquire.return_value = acquire_cm
    pool.close = AsyncMock()
    return pool


def _mock_conn() -> MagicMock:
    tx = MagicMock()
    tx.__aenter__ = AsyncMock(return_value=None)
    tx.__aexit__ = AsyncMock(return_value=False)
    conn = MagicMock()
    conn.transaction.return_value = tx
    return conn


class TestDatabase:

    @pytest.mark.asyncio
    async def test_transaction_yields_unit_of_work_on_one_connection(self):
        conn = _mock_conn()
        db = Database(pool=_mock_pool(conn))

        async with db.transaction() as uow:
            assert isinstance(uow, UnitOfWork)
            assert uow.conn is conn

        conn.transaction.assert_called_once()
        conn.transaction.return_value.__aexit__.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_with_transaction_returns_result(self):
        conn = _mock_conn()
        db = Database(pool=_mock_pool(conn))

        async def work(uow):
            return uow.conn

        assert await db.with_transaction(work) is conn

    @pytest.mark.asyncio
    async def test_exception_reaches_transaction_exit(self):
        conn = _mock_conn()
        db = Database(pool=_mock_pool(conn))

        async def work(uow):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await db.with_transaction(work)

        exit_args = conn.transaction.return_value.__aexit__.call_args.args
        assert exit_args[0] is RuntimeError

    @pytest.mark.asyncio
    async def test_provided_pool_is_not_closed(self):
        pool = _mock_pool(_mock_conn())
        db = Database(pool=pool)
        await db.close()
        pool.close.assert_not_called()

    def test_requires_connection_source(self):
        with pytest.raises(ValueError):
            Database()

    @pytest.mark.asyncio
    async def test_not_connected(self):
        db = Database.from_settings(DatabaseSettings())
        with pytest.raises(RuntimeError, match="not connected"):
            async with db.transaction():
                pass
