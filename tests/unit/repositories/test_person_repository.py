"""
Unit tests for PersonRepository and the DatabaseSession unit of work,
using an in-memory SQLite database.
"""
from unittest.mock import AsyncMock

import pytest

from person_registry.models.domain import Color
from person_registry.repositories.base import DatabaseSession, RepositoryError
from person_registry.repositories.person_repository import PersonRepository


class TestPersonRepository:
    @pytest.mark.asyncio
    async def test_save_assigns_identity(self, db_session, sample_person):
        repository = PersonRepository(db_session)

        saved = await repository.save(sample_person)

        assert saved.id is not None
        assert saved.last_name == "Doe"
        assert saved.color is Color.BLUE

    @pytest.mark.asyncio
    async def test_identities_are_distinct(self, db_session, sample_persons):
        repository = PersonRepository(db_session)

        saved = await repository.save_all(sample_persons)

        ids = [person.id for person in saved]
        assert None not in ids
        assert len(set(ids)) == len(ids)

    @pytest.mark.asyncio
    async def test_find_all_in_identity_order(self, db_session, sample_persons):
        repository = PersonRepository(db_session)
        await repository.save_all(sample_persons)

        persons = await repository.find_all()

        assert [person.last_name for person in persons] == ["Müller", "Petersen", "Klaussen"]
        assert [person.id for person in persons] == sorted(person.id for person in persons)

    @pytest.mark.asyncio
    async def test_find_by_id(self, db_session, sample_person):
        repository = PersonRepository(db_session)
        saved = await repository.save(sample_person)

        found = await repository.find_by_id(saved.id)

        assert found == saved
        assert await repository.find_by_id(saved.id + 100) is None

    @pytest.mark.asyncio
    async def test_find_by_color(self, db_session, sample_persons):
        repository = PersonRepository(db_session)
        await repository.save_all(sample_persons)

        greens = await repository.find_by_color(Color.GREEN)

        assert [person.last_name for person in greens] == ["Petersen", "Klaussen"]
        assert await repository.find_by_color(Color.WHITE) == []

    @pytest.mark.asyncio
    async def test_save_existing_person_keeps_identity(self, db_session, sample_person):
        repository = PersonRepository(db_session)
        saved = await repository.save(sample_person)

        saved.city = "New City"
        updated = await repository.save(saved)

        assert updated.id == saved.id
        assert updated.city == "New City"
        assert await repository.count() == 1

    @pytest.mark.asyncio
    async def test_count_with_filter(self, db_session, sample_persons):
        repository = PersonRepository(db_session)
        await repository.save_all(sample_persons)

        assert await repository.count() == 3
        assert await repository.count(filters={"color": Color.GREEN}) == 2

    @pytest.mark.asyncio
    async def test_list_all_ignores_unknown_filter_columns(self, db_session, sample_persons):
        repository = PersonRepository(db_session)
        await repository.save_all(sample_persons)

        persons = await repository.list_all(filters={"nickname": "Pete"})

        assert [person.last_name for person in persons] == ["Müller", "Petersen", "Klaussen"]

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, sample_person):
        session = AsyncMock()
        session.get.side_effect = RuntimeError("connection lost")

        with pytest.raises(RepositoryError) as exc_info:
            await PersonRepository(session).find_by_id(1)

        assert isinstance(exc_info.value.original_error, RuntimeError)


class TestDatabaseSession:
    @pytest.mark.asyncio
    async def test_commits_on_success(self, session_maker, sample_person):
        async with DatabaseSession(session_maker()) as session:
            await PersonRepository(session).save(sample_person)

        async with session_maker() as session:
            assert await PersonRepository(session).count() == 1

    @pytest.mark.asyncio
    async def test_rolls_back_on_error(self, session_maker, sample_person):
        with pytest.raises(RuntimeError):
            async with DatabaseSession(session_maker()) as session:
                await PersonRepository(session).save(sample_person)
                raise RuntimeError("abort")

        async with session_maker() as session:
            assert await PersonRepository(session).count() == 0

    @pytest.mark.asyncio
    async def test_commit_failure_is_wrapped(self):
        session = AsyncMock()
        session.commit.side_effect = RuntimeError("disk full")

        with pytest.raises(RepositoryError):
            async with DatabaseSession(session):
                pass

        session.rollback.assert_awaited_once()
        session.close.assert_awaited_once()
