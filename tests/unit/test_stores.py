"""
Unit Tests for the credential and project stores
"""
import pytest
from datetime import datetime, timedelta
from faker import Faker

from projecthub.core.exceptions import DuplicateEmailError
from projecthub.core.security import get_password_hash, verify_password
from projecthub.models.project import ProjectStatus
from projecthub.services.project_store import ProjectStore
from projecthub.services.user_store import UserStore

fake = Faker()


class TestUserStore:

    async def test_create_then_find_by_email(self, db_session):
        store = UserStore(db_session)
        password_hash = get_password_hash("s3cret", rounds=4)

        created = await store.create_user("alice", "alice@example.com", password_hash)
        found = await store.find_by_email("alice@example.com")

        assert found is not None
        assert found.id == created.id
        assert found.username == "alice"
        assert found.hashed_password != "s3cret"
        assert verify_password("s3cret", found.hashed_password)

    async def test_role_defaults_to_user(self, db_session):
        user = await UserStore(db_session).create_user("bob", "bob@example.com", "hash")

        assert user.role == "user"

    async def test_duplicate_email_rejected(self, db_session):
        store = UserStore(db_session)
        await store.create_user("alice", "alice@example.com", "hash-1")

        with pytest.raises(DuplicateEmailError):
            await store.create_user("someone-else", "alice@example.com", "hash-2", role="admin")

    async def test_find_missing_returns_none(self, db_session):
        store = UserStore(db_session)

        assert await store.find_by_email("nobody@example.com") is None
        assert await store.find_by_id("00000000-0000-0000-0000-000000000000") is None

    async def test_ids_are_generated_and_unique(self, db_session):
        store = UserStore(db_session)
        first = await store.create_user("a", fake.unique.email(), "h")
        second = await store.create_user("b", fake.unique.email(), "h")

        assert first.id and second.id
        assert first.id != second.id


class TestProjectStore:

    async def _insert(self, store, owner_id, title, created_at, status=ProjectStatus.ACTIVE):
        return await store.insert(
            owner_id=owner_id,
            title=title,
            description="desc",
            category="cat",
            status=status,
            created_at=created_at,
        )

    async def test_list_is_newest_first_and_scoped(self, db_session, owner):
        store = ProjectStore(db_session)
        other = await UserStore(db_session).create_user("other", fake.unique.email(), "h")
        base = datetime(2026, 3, 1)

        await self._insert(store, owner.id, "oldest", base)
        await self._insert(store, owner.id, "newest", base + timedelta(days=2))
        await self._insert(store, owner.id, "middle", base + timedelta(days=1))
        await self._insert(store, other.id, "not mine", base + timedelta(days=3))

        titles = [p.title for p in await store.list_for_owner(owner.id)]
        assert titles == ["newest", "middle", "oldest"]

    async def test_equal_created_at_falls_back_to_insertion_order(self, db_session, owner):
        store = ProjectStore(db_session)
        same = datetime(2026, 3, 1, 12, 0)

        for title in ("a", "b", "c", "d"):
            await self._insert(store, owner.id, title, same)

        titles = [p.title for p in await store.list_for_owner(owner.id)]
        assert titles == ["d", "c", "b", "a"]

    async def test_seq_increases_with_each_insert(self, db_session, owner):
        store = ProjectStore(db_session)
        first = await self._insert(store, owner.id, "first", datetime(2026, 3, 1))
        second = await self._insert(store, owner.id, "second", datetime(2026, 3, 1))

        assert second.seq > first.seq

    async def test_insert_completed_sets_completion_date(self, db_session, owner):
        store = ProjectStore(db_session)
        created_at = datetime(2026, 3, 1, 9, 30)

        project = await self._insert(store, owner.id, "done", created_at, status=ProjectStatus.COMPLETED)

        assert project.completion_date == created_at

    async def test_mark_completed_once(self, db_session, owner):
        store = ProjectStore(db_session)
        project = await self._insert(store, owner.id, "p", datetime(2026, 3, 1))
        first = datetime(2026, 3, 2)

        assert await store.mark_completed(project.id, owner.id, first) is True
        assert await store.mark_completed(project.id, owner.id, datetime(2026, 3, 9)) is False

        reloaded = await store.get_owned(project.id, owner.id)
        assert reloaded.status == ProjectStatus.COMPLETED
        assert reloaded.completion_date == first

    async def test_other_owner_cannot_complete_or_delete(self, db_session, owner):
        store = ProjectStore(db_session)
        project = await self._insert(store, owner.id, "p", datetime(2026, 3, 1))
        intruder = await UserStore(db_session).create_user("eve", fake.unique.email(), "h")

        assert await store.get_owned(project.id, intruder.id) is None
        assert await store.mark_completed(project.id, intruder.id, datetime(2026, 3, 2)) is False
        assert await store.delete_owned(project.id, intruder.id) is False

        still_there = await store.get_owned(project.id, owner.id)
        assert still_there.status == ProjectStatus.ACTIVE

    async def test_delete_twice(self, db_session, owner):
        store = ProjectStore(db_session)
        project = await self._insert(store, owner.id, "p", datetime(2026, 3, 1))

        assert await store.delete_owned(project.id, owner.id) is True
        assert await store.delete_owned(project.id, owner.id) is False
        assert await store.get_owned(project.id, owner.id) is None

    async def test_aggregates(self, db_session, owner):
        store = ProjectStore(db_session)
        await self._insert(store, owner.id, "a", datetime(2026, 1, 1))
        await self._insert(store, owner.id, "b", datetime(2026, 1, 2), status=ProjectStatus.ON_HOLD)
        await self._insert(store, owner.id, "c", datetime(2026, 1, 3), status=ProjectStatus.COMPLETED)

        by_status = await store.count_by_status(owner.id)
        assert by_status == {
            ProjectStatus.ACTIVE: 1,
            ProjectStatus.ON_HOLD: 1,
            ProjectStatus.COMPLETED: 1,
        }
        assert await store.count_by_category(owner.id) == {"cat": 3}
        assert await store.completion_dates(owner.id) == [datetime(2026, 1, 3)]
