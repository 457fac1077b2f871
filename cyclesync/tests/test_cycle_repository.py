"""Tests for the identity-scoped cycle repository."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from cyclesync.models.auth import AuthContext
from cyclesync.result import Err, ErrorKind, Ok
from cyclesync.services.cycles import CycleRepository

from conftest import OTHER_USER_ID, TEST_USER_ID, InMemoryStore


class TestListForUser:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("n", [0, 1, 7])
    async def test_returns_all_user_cycles_newest_first(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext, n: int
    ) -> None:
        start = date(2024, 1, 3)
        dates = [(start + timedelta(days=28 * i)).isoformat() for i in range(n)]
        # seed out of order
        store.seed(TEST_USER_ID, *(dates[::2] + dates[1::2]))
        store.seed(OTHER_USER_ID, "2030-01-01")

        result = await repository.list_for_user(identity)

        assert isinstance(result, Ok)
        assert len(result.data) == n
        starts = [c.start_date for c in result.data]
        assert starts == sorted(starts, reverse=True)
        assert all(c.user_id == TEST_USER_ID for c in result.data)

    @pytest.mark.asyncio
    async def test_missing_identity_is_a_no_op(
        self, repository: CycleRepository, store: InMemoryStore
    ) -> None:
        result = await repository.list_for_user(None)
        assert result == Err(ErrorKind.missing_identity)
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_remote_failure_carries_message(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext
    ) -> None:
        store.fail_select = "relation \"cycles\" does not exist"
        result = await repository.list_for_user(identity)
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.remote_failure
        assert result.message == "relation \"cycles\" does not exist"


class TestCreate:
    @pytest.mark.asyncio
    async def test_inserts_owner_and_iso_date(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext
    ) -> None:
        result = await repository.create(identity, date(2024, 3, 15))

        assert isinstance(result, Ok)
        assert result.data is not None
        assert result.data.start_date == date(2024, 3, 15)
        (row,) = store.rows()
        assert row["user_id"] == TEST_USER_ID
        assert row["start_date"] == "2024-03-15"

    @pytest.mark.asyncio
    async def test_same_date_twice_inserts_twice(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext
    ) -> None:
        await repository.create(identity, date(2024, 3, 15))
        await repository.create(identity, date(2024, 3, 15))
        assert len(store.rows()) == 2

    @pytest.mark.asyncio
    async def test_missing_identity_inserts_nothing(
        self, repository: CycleRepository, store: InMemoryStore
    ) -> None:
        result = await repository.create(None, date(2024, 3, 15))
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.missing_identity
        assert store.rows() == []

    @pytest.mark.asyncio
    async def test_insert_failure(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext
    ) -> None:
        store.fail_insert = "Failed to fetch"
        result = await repository.create(identity, date(2024, 3, 15))
        assert result == Err(ErrorKind.remote_failure, "Failed to fetch")
        assert store.rows() == []


class TestMalformedRows:
    @pytest.mark.asyncio
    async def test_unparseable_row_is_a_remote_failure(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext
    ) -> None:
        store.tables["cycles"] = [
            {"id": 1, "user_id": TEST_USER_ID, "start_date": "not-a-date"}
        ]
        result = await repository.list_for_user(identity)
        assert isinstance(result, Err)
        assert result.kind is ErrorKind.remote_failure
        assert result.message == "Received a malformed cycle record"

    @pytest.mark.asyncio
    async def test_malformed_insert_representation_still_succeeds(
        self, repository: CycleRepository, store: InMemoryStore, identity: AuthContext,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        async def insert_one(table, record, *, identity):
            store.tables.setdefault(table, []).append({"id": 1, **record})
            return {"id": 1, "start_date": record["start_date"]}

        monkeypatch.setattr(store, "insert_one", insert_one)
        result = await repository.create(identity, date(2024, 3, 15))
        assert result == Ok(None)
        assert len(store.rows()) == 1
