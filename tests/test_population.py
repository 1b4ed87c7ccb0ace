"""Tests for population orchestration."""

from datetime import date
from unittest.mock import patch

import httpx
import pytest
import respx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from carddex.db.operations import (
    batch_upsert_cards,
    count_cards,
    count_sets,
    get_cached_set,
    get_cached_sets,
    upsert_cached_set,
)
from carddex.filtering import subtract_months
from carddex.models.catalog import CachedCard, CachedSet, GameSlug, PrintStatus
from carddex.models.db import Base, CachedCardDB
from carddex.models.results import PopulateCardsResult, PopulationOverview, PopulationStatus
from carddex.providers.onepiece import OPTCG_API
from carddex.providers.pokemon import POKEMON_API, PokemonProvider
from carddex.services.population import (
    clear_game_cache,
    get_population_status,
    populate_game_data,
    populate_set_cards,
    populate_sets,
    update_print_status,
)


def months_ago(months: int) -> str:
    return subtract_months(date.today(), months).isoformat()


def pokemon_sets(count: int) -> dict:
    return {
        "data": [
            {
                "id": f"s{n}",
                "name": f"Set {n}",
                "series": "Test",
                "releaseDate": months_ago(count - n + 1),
                "total": 2,
            }
            for n in range(1, count + 1)
        ]
    }


def optcg_listing(codes: list[str]) -> dict:
    return {
        "data": [
            {"code": code, "name": f"Card {code}", "type": "CHARACTER", "set": "Test Set"}
            for code in codes
        ],
        "total": len(codes),
        "current_page": 1,
        "total_pages": 1,
    }


async def card_snapshot(session: AsyncSession) -> list[tuple[str, str, str]]:
    result = await session.execute(
        select(CachedCardDB.card_id, CachedCardDB.set_id, CachedCardDB.name).order_by(
            CachedCardDB.card_id
        )
    )
    return [tuple(row) for row in result.all()]


@pytest.fixture
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


class TestPopulateSets:
    @respx.mock
    async def test_age_filter(self, session: AsyncSession, http_client, no_sleep) -> None:
        """Sets older than max_age_months are skipped."""
        respx.get(f"{POKEMON_API}/sets").mock(
            return_value=httpx.Response(
                200,
                json={
                    "data": [
                        {"id": "new", "name": "New", "series": "S", "releaseDate": months_ago(6)},
                        {"id": "old", "name": "Old", "series": "S", "releaseDate": months_ago(13)},
                        {"id": "odd", "name": "Odd", "series": "S", "releaseDate": "not-a-date"},
                    ]
                },
            )
        )

        result = await populate_sets(
            session, http_client, "pokemon", max_age_months=12, sleep=no_sleep
        )

        assert (result.count, result.skipped) == (2, 1)
        assert await get_cached_set(session, GameSlug.POKEMON, "old") is None
        assert await get_cached_set(session, GameSlug.POKEMON, "odd") is not None

    @respx.mock
    async def test_idempotent(self, session: AsyncSession, http_client, no_sleep) -> None:
        """Running twice leaves the same rows."""
        respx.get(f"{POKEMON_API}/sets").mock(
            return_value=httpx.Response(200, json=pokemon_sets(3))
        )

        await populate_sets(session, http_client, GameSlug.POKEMON, sleep=no_sleep)
        second = await populate_sets(session, http_client, GameSlug.POKEMON, sleep=no_sleep)

        assert second.count == 3
        assert await count_sets(session, GameSlug.POKEMON) == 3

    @respx.mock
    async def test_partial_failure(self, session: AsyncSession, http_client, no_sleep) -> None:
        """A failure on set 3 of 5 is recorded and the other four are cached."""
        respx.get(f"{POKEMON_API}/sets").mock(
            return_value=httpx.Response(200, json=pokemon_sets(5))
        )

        async def flaky_upsert(session: AsyncSession, cached_set: CachedSet) -> str:
            if cached_set.set_id == "s3":
                raise RuntimeError("disk full")
            return await upsert_cached_set(session, cached_set)

        with patch("carddex.providers.common.upsert_cached_set", new=flaky_upsert):
            result = await populate_sets(session, http_client, "pokemon", sleep=no_sleep)

        assert result.success is False
        assert result.count == 4
        assert result.errors == ["pokemon set s3: disk full"]
        rows = await get_cached_sets(session, GameSlug.POKEMON)
        assert {r.set_id for r in rows} == {"s1", "s2", "s4", "s5"}


class TestPopulateSetCards:
    @respx.mock
    async def test_single_set(self, session: AsyncSession, http_client, no_sleep) -> None:
        respx.get(f"{POKEMON_API}/cards").mock(
            return_value=httpx.Response(
                200,
                json={"totalCount": 1, "data": [{"id": "s1-1", "name": "A", "number": "1"}]},
            )
        )

        result = await populate_set_cards(session, http_client, "pokemon", "s1", sleep=no_sleep)

        assert result.success is True
        assert result.count == 1

    @respx.mock
    async def test_unchanged_cards_not_counted(
        self, session: AsyncSession, http_client, no_sleep
    ) -> None:
        """A second run over identical data writes nothing."""
        respx.get(f"{POKEMON_API}/cards").mock(
            return_value=httpx.Response(
                200,
                json={"totalCount": 1, "data": [{"id": "s1-1", "name": "A", "number": "1"}]},
            )
        )

        await populate_set_cards(session, http_client, "pokemon", "s1", sleep=no_sleep)
        second = await populate_set_cards(session, http_client, "pokemon", "s1", sleep=no_sleep)

        assert second.success is True
        assert second.count == 0
        assert await count_cards(session, GameSlug.POKEMON) == 1


class TestPopulateGameData:
    @respx.mock
    async def test_one_piece_end_to_end(
        self, session: AsyncSession, http_client, no_sleep
    ) -> None:
        """Three OP05 cards become one estimated set and three cached cards."""
        respx.get(f"{OPTCG_API}/cards").mock(
            return_value=httpx.Response(
                200, json=optcg_listing(["OP05-001", "OP05-002", "OP05-003"])
            )
        )

        result = await populate_game_data(session, http_client, "onepiece", sleep=no_sleep)

        assert result.success is True
        assert result.sets_processed == 1
        assert result.cards_processed == 3
        assert result.errors == []

        cached_set = await get_cached_set(session, GameSlug.ONEPIECE, "OP05")
        assert cached_set is not None
        assert cached_set.total_cards == 3
        assert cached_set.release_date == "2023-07-22"
        assert cached_set.release_date_estimated is True
        assert [c[0] for c in await card_snapshot(session)] == [
            "optcg-OP05-001",
            "optcg-OP05-002",
            "optcg-OP05-003",
        ]

    @respx.mock
    async def test_resumable(self, session: AsyncSession, http_client, no_sleep) -> None:
        """A capped run followed by a full run matches a single full run."""
        codes = ["OP01-001", "OP01-002", "OP02-001", "OP02-002", "OP03-001", "OP03-002"]
        respx.get(f"{OPTCG_API}/cards").mock(
            return_value=httpx.Response(200, json=optcg_listing(codes))
        )

        partial = await populate_game_data(
            session, http_client, "onepiece", max_sets=2, sleep=no_sleep
        )
        assert partial.cards_processed == 4
        assert partial.sets_processed == 3

        rerun = await populate_game_data(session, http_client, "onepiece", sleep=no_sleep)
        assert rerun.success is True
        assert rerun.cards_processed == 2

        engine = create_async_engine("sqlite+aiosqlite:///:memory:")
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        fresh_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        async with fresh_factory() as fresh:
            single = await populate_game_data(fresh, http_client, "onepiece", sleep=no_sleep)
            assert single.cards_processed == 6
            expected = await card_snapshot(fresh)
            expected_sets = await count_sets(fresh, GameSlug.ONEPIECE)
        await engine.dispose()

        assert await card_snapshot(session) == expected
        assert await count_sets(session, GameSlug.ONEPIECE) == expected_sets == 3

    @respx.mock
    async def test_newest_sets_first(
        self, session: AsyncSession, http_client, no_sleep, monkeypatch
    ) -> None:
        """max_sets keeps the most recent sets, passing each set's name."""
        respx.get(f"{POKEMON_API}/sets").mock(
            return_value=httpx.Response(200, json=pokemon_sets(4))
        )
        calls: list[tuple[str, str | None]] = []

        async def fake_populate_cards(self, set_id: str, set_name: str | None = None):
            calls.append((set_id, set_name))
            return PopulateCardsResult(success=True, count=2)

        monkeypatch.setattr(PokemonProvider, "populate_cards", fake_populate_cards)

        result = await populate_game_data(
            session, http_client, "pokemon", max_sets=2, sleep=no_sleep
        )

        assert calls == [("s4", "Set 4"), ("s3", "Set 3")]
        assert result.cards_processed == 4

    @respx.mock
    async def test_set_failure_does_not_stop_run(
        self, session: AsyncSession, http_client, no_sleep, sleeps, monkeypatch
    ) -> None:
        """An exception from one set is recorded and the next set still runs."""
        respx.get(f"{POKEMON_API}/sets").mock(
            return_value=httpx.Response(200, json=pokemon_sets(3))
        )

        async def fake_populate_cards(self, set_id: str, set_name: str | None = None):
            if set_id == "s2":
                raise RuntimeError("connection reset")
            return PopulateCardsResult(success=True, count=1)

        monkeypatch.setattr(PokemonProvider, "populate_cards", fake_populate_cards)

        result = await populate_game_data(session, http_client, "pokemon", sleep=no_sleep)

        assert result.success is False
        assert result.cards_processed == 2
        assert result.errors == ["pokemon set s2: connection reset"]
        # Three set upserts at the base delay, then twice that after each set
        assert sleeps == [0.1, 0.1, 0.1, 0.2, 0.2, 0.2]

    @respx.mock
    async def test_aborts_when_sets_fail(
        self, session: AsyncSession, http_client, no_sleep
    ) -> None:
        """No sets cached means no card requests."""
        respx.get(f"{POKEMON_API}/sets").mock(return_value=httpx.Response(503))
        cards_route = respx.get(f"{POKEMON_API}/cards").mock(
            return_value=httpx.Response(200, json={"data": [], "totalCount": 0})
        )

        result = await populate_game_data(session, http_client, "pokemon", sleep=no_sleep)

        assert result.success is False
        assert result.sets_processed == 0
        assert result.cards_processed == 0
        assert len(result.errors) == 1
        assert not cards_route.called

    @respx.mock
    async def test_age_filter_applies_to_cards(
        self, session: AsyncSession, http_client, no_sleep, monkeypatch
    ) -> None:
        """Sets cached by an earlier run outside the window get no card requests."""
        await upsert_cached_set(
            session, CachedSet("ancient", GameSlug.POKEMON, "Ancient", "S", "1999-01-09")
        )
        await session.commit()
        respx.get(f"{POKEMON_API}/sets").mock(
            return_value=httpx.Response(200, json=pokemon_sets(1))
        )
        calls: list[str] = []

        async def fake_populate_cards(self, set_id: str, set_name: str | None = None):
            calls.append(set_id)
            return PopulateCardsResult(success=True)

        monkeypatch.setattr(PokemonProvider, "populate_cards", fake_populate_cards)

        await populate_game_data(
            session, http_client, "pokemon", max_age_months=12, sleep=no_sleep
        )

        assert calls == ["s1"]


class TestClearAndStatus:
    async def _seed(self, session: AsyncSession) -> None:
        await upsert_cached_set(
            session, CachedSet("sv1", GameSlug.POKEMON, "Scarlet & Violet", "SV", "2023-03-31")
        )
        await upsert_cached_set(
            session, CachedSet("OP01", GameSlug.ONEPIECE, "Romance Dawn", "OP", "2022-07-22")
        )
        await batch_upsert_cards(
            session,
            [
                CachedCard("sv1-1", GameSlug.POKEMON, "sv1", "Sprigatito", "1", "Pokémon"),
                CachedCard("sv1-2", GameSlug.POKEMON, "sv1", "Floragato", "2", "Pokémon"),
                CachedCard("optcg-OP01-001", GameSlug.ONEPIECE, "OP01", "Zoro", "OP01-001", "LEADER"),
            ],
        )
        await session.commit()

    async def test_clear_both(self, session: AsyncSession) -> None:
        """Default clear removes sets and cards of one game only."""
        await self._seed(session)

        result = await clear_game_cache(session, "pokemon")

        assert (result.sets_deleted, result.cards_deleted) == (1, 2)
        assert await count_sets(session, GameSlug.ONEPIECE) == 1
        assert await count_cards(session, GameSlug.ONEPIECE) == 1

    async def test_clear_cards_only(self, session: AsyncSession) -> None:
        await self._seed(session)

        result = await clear_game_cache(session, GameSlug.POKEMON, clear_sets=False)

        assert (result.sets_deleted, result.cards_deleted) == (0, 2)
        assert await count_sets(session, GameSlug.POKEMON) == 1

    async def test_game_status(self, session: AsyncSession) -> None:
        await self._seed(session)

        status = await get_population_status(session, "pokemon")

        assert isinstance(status, PopulationStatus)
        assert (status.set_count, status.card_count) == (1, 2)
        assert status.last_updated is not None

    async def test_empty_game_status(self, session: AsyncSession) -> None:
        status = await get_population_status(session, GameSlug.MTG)

        assert isinstance(status, PopulationStatus)
        assert (status.set_count, status.card_count, status.last_updated) == (0, 0, None)

    async def test_overview(self, session: AsyncSession) -> None:
        """Without a game, totals plus every game's breakdown."""
        await self._seed(session)

        overview = await get_population_status(session)

        assert isinstance(overview, PopulationOverview)
        assert (overview.total_sets, overview.total_cards) == (2, 3)
        assert set(overview.by_game) == {g.value for g in GameSlug}
        assert overview.by_game["onepiece"].card_count == 1

    async def test_update_print_status(self, session: AsyncSession) -> None:
        await self._seed(session)

        result = await update_print_status(session, "pokemon", today=date(2026, 10, 18))

        assert result.updated_to_out_of_print == 1
        row = await get_cached_set(session, GameSlug.POKEMON, "sv1")
        assert row is not None
        assert row.print_status == PrintStatus.OUT_OF_PRINT.value
