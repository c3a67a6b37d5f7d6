"""
Tests for the MongoDB stores: the filters and update documents they send to
motor collections (mocked with unittest.mock).
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from certdesk.db.request_store import NEWEST_FIRST, RequestStore
from certdesk.db.settings_store import SettingsStore
from certdesk.db.template_store import TemplateStore
from certdesk.db.user_store import UserStore
from fakes import make_request


# ─── Fixtures ─────────────────────────────────────────────────────────────────


def make_collection() -> MagicMock:
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.count_documents = AsyncMock(return_value=0)
    collection.create_index = AsyncMock()
    return collection


def make_db() -> MagicMock:
    db = MagicMock()
    db.requests = make_collection()
    db.users = make_collection()
    db.admins = make_collection()
    db.settings = make_collection()
    return db


def update_result(matched=0, modified=0, upserted_id=None) -> MagicMock:
    result = MagicMock()
    result.matched_count = matched
    result.modified_count = modified
    result.upserted_id = upserted_id
    return result


# ─── RequestStore ─────────────────────────────────────────────────────────────


class TestRequestStore:
    @pytest.mark.asyncio
    async def test_create_inserts_document(self):
        db = make_db()
        request = make_request("r1")

        await RequestStore(db).create(request)

        doc = db.requests.insert_one.await_args.args[0]
        assert doc["request_id"] == "r1"
        assert doc["status"] == "pending"
        assert doc["version"] == 0

    @pytest.mark.asyncio
    async def test_get(self):
        db = make_db()
        store = RequestStore(db)
        assert await store.get("r1") is None

        db.requests.find_one.return_value = {"_id": "x", **make_request("r1").to_dict()}
        request = await store.get("r1")
        assert request.request_id == "r1"
        assert db.requests.find_one.await_args.args[0] == {"request_id": "r1"}

    @pytest.mark.asyncio
    async def test_conditional_update_guards_status_and_version(self):
        db = make_db()
        db.requests.update_one.return_value = update_result(matched=1, modified=1)

        ok = await RequestStore(db).update_if_unchanged("r1", "pending", 3, {"status": "rejected"})

        assert ok is True
        query, update = db.requests.update_one.await_args.args
        assert query == {"request_id": "r1", "status": "pending", "version": 3}
        assert update == {"$set": {"status": "rejected"}, "$inc": {"version": 1}}

    @pytest.mark.asyncio
    async def test_conditional_update_conflict(self):
        db = make_db()
        db.requests.update_one.return_value = update_result()
        assert await RequestStore(db).update_if_unchanged("r1", "pending", 0, {}) is False

    @pytest.mark.asyncio
    async def test_conditional_delete(self):
        db = make_db()
        result = MagicMock()
        result.deleted_count = 1
        db.requests.delete_one.return_value = result

        ok = await RequestStore(db).delete_if_unchanged("r1", "student-1", "pending", 0)

        assert ok is True
        assert db.requests.delete_one.await_args.args[0] == {
            "request_id": "r1",
            "requester_id": "student-1",
            "status": "pending",
            "version": 0,
        }

    @pytest.mark.asyncio
    async def test_list_by_requester_sorted_newest_first(self):
        db = make_db()
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.__aiter__.return_value = [make_request("r2").to_dict(), make_request("r1").to_dict()]
        db.requests.find.return_value = cursor

        requests = await RequestStore(db).list_by_requester("student-1")

        assert [r.request_id for r in requests] == ["r2", "r1"]
        assert db.requests.find.call_args.args[0] == {"requester_id": "student-1"}
        cursor.sort.assert_called_once_with(NEWEST_FIRST)

    @pytest.mark.asyncio
    async def test_list_recent_reviewed_excludes_pending_and_limits(self):
        db = make_db()
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[make_request("r1", status="signed").to_dict()])
        db.requests.find.return_value = cursor

        requests = await RequestStore(db).list_recent_reviewed(10)

        assert [r.request_id for r in requests] == ["r1"]
        assert db.requests.find.call_args.args[0] == {"status": {"$ne": "pending"}}
        cursor.sort.assert_called_once_with(NEWEST_FIRST)
        cursor.limit.assert_called_once_with(10)

    @pytest.mark.asyncio
    async def test_ensure_indexes(self):
        db = make_db()
        await RequestStore(db).ensure_indexes()
        db.requests.create_index.assert_any_await("request_id", unique=True)


# ─── UserStore ────────────────────────────────────────────────────────────────


class TestUserStore:
    @pytest.mark.asyncio
    async def test_apply_delta_uses_inc(self):
        db = make_db()
        db.users.update_one.return_value = update_result(matched=1, modified=1)

        ok = await UserStore(db).apply_delta("student-1", {"pending": -1, "signed": 1})

        assert ok is True
        query, update = db.users.update_one.await_args.args
        assert query == {"user_id": "student-1"}
        assert update == {"$inc": {"request_counts.pending": -1, "request_counts.signed": 1}}
        assert db.users.update_one.await_args.kwargs["upsert"] is False

    @pytest.mark.asyncio
    async def test_apply_delta_missing_user(self):
        db = make_db()
        db.users.update_one.return_value = update_result()
        assert await UserStore(db).apply_delta("ghost", {"pending": -1}) is False

    @pytest.mark.asyncio
    async def test_apply_delta_upserts_with_zeroed_counters(self):
        db = make_db()
        db.users.update_one.return_value = update_result(upserted_id="new")

        ok = await UserStore(db).apply_delta(
            "student-1", {"pending": 1}, create_if_absent=True, name="Ana", email="a@x"
        )

        assert ok is True
        _, update = db.users.update_one.await_args.args
        assert update["$inc"] == {"request_counts.pending": 1}
        on_insert = update["$setOnInsert"]
        assert on_insert["request_counts.signed"] == 0
        assert on_insert["request_counts.rejected"] == 0
        assert "request_counts.pending" not in on_insert
        assert "request_counts" not in on_insert
        assert on_insert["name"] == "Ana"
        assert db.users.update_one.await_args.kwargs["upsert"] is True

    @pytest.mark.asyncio
    async def test_unknown_counter_field(self):
        with pytest.raises(ValueError):
            await UserStore(make_db()).apply_delta("student-1", {"archived": 1})

    @pytest.mark.asyncio
    async def test_create_if_absent_never_overwrites(self):
        db = make_db()
        db.users.update_one.return_value = update_result(matched=1)

        created = await UserStore(db).create_if_absent("student-1", "Ana", "a@x")

        assert created is False
        _, update = db.users.update_one.await_args.args
        assert list(update) == ["$setOnInsert"]
        assert update["$setOnInsert"]["request_counts"] == {"pending": 0, "signed": 0, "rejected": 0}

    @pytest.mark.asyncio
    async def test_is_admin(self):
        db = make_db()
        store = UserStore(db)
        assert await store.is_admin("student-1") is False

        db.admins.find_one.return_value = {"user_id": "admin-1"}
        assert await store.is_admin("admin-1") is True

    @pytest.mark.asyncio
    async def test_get_profile(self):
        db = make_db()
        db.users.find_one.return_value = {
            "user_id": "student-1",
            "name": "Ana",
            "request_counts": {"pending": 2, "signed": 1, "rejected": 0},
        }
        profile = await UserStore(db).get("student-1")
        assert profile.request_counts.pending == 2
        assert profile.request_counts.total == 3


# ─── SettingsStore ────────────────────────────────────────────────────────────


class TestSettingsStore:
    @pytest.mark.asyncio
    async def test_selected_template_roundtrip_calls(self):
        db = make_db()
        store = SettingsStore(db)
        assert await store.get_selected_template() is None

        db.settings.find_one.return_value = {"_id": "templates", "selected_template": "bursa.docx"}
        assert await store.get_selected_template() == "bursa.docx"

        await store.set_selected_template("viza.docx")
        query, update = db.settings.update_one.await_args.args
        assert query == {"_id": "templates"}
        assert update == {"$set": {"selected_template": "viza.docx"}}
        assert db.settings.update_one.await_args.kwargs["upsert"] is True


# ─── TemplateStore ────────────────────────────────────────────────────────────


class TestTemplateStore:
    @pytest.mark.asyncio
    async def test_missing_folder_lists_nothing(self, tmp_path):
        store = TemplateStore(tmp_path / "templates")
        assert await store.list_templates() == []
        assert await store.exists("bursa.docx") is False

    @pytest.mark.asyncio
    async def test_save_creates_folder_and_replaces(self, tmp_path):
        store = TemplateStore(tmp_path / "templates")

        assert await store.save("bursa.docx", b"v1") is False
        assert await store.save("bursa.docx", b"v22") is True

        assert (tmp_path / "templates" / "bursa.docx").read_bytes() == b"v22"
        assert await store.exists("bursa.docx") is True

    @pytest.mark.asyncio
    async def test_lists_only_docx_files_by_name(self, tmp_path):
        store = TemplateStore(tmp_path)
        await store.save("viza.docx", b"123")
        await store.save("bursa.docx", b"1")
        (tmp_path / "notes.txt").write_text("x")
        (tmp_path / "old.docx").mkdir()

        templates = await store.list_templates()

        assert [t.name for t in templates] == ["bursa.docx", "viza.docx"]
        assert [t.size for t in templates] == [1, 3]
        assert templates[0].uploaded_at is not None

    @pytest.mark.asyncio
    async def test_delete(self, tmp_path):
        store = TemplateStore(tmp_path)
        await store.save("bursa.docx", b"1")

        assert await store.delete("bursa.docx") is True
        assert await store.delete("bursa.docx") is False
        assert not (tmp_path / "bursa.docx").exists()
