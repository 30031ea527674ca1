"""HTTP tests for the matching and scoring routes."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lease_match.domain.models import PropertyMatch


def _build_app_client(db_session: AsyncSession):
    """Build an HTTPX AsyncClient wired to a test FastAPI app.

    Uses a fresh FastAPI app with only the matching routers so the
    production lifespan (table creation on the real engine) never runs.
    """
    from fastapi import FastAPI
    from lease_match.app.routes.matching import router, scoring_router
    from lease_match.infra.database import get_db

    test_app = FastAPI()
    test_app.include_router(router)
    test_app.include_router(scoring_router)

    async def _override_get_db():
        yield db_session

    test_app.dependency_overrides[get_db] = _override_get_db

    return AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://testserver",
    )


@pytest.fixture(autouse=True)
def _inline_workers(monkeypatch):
    monkeypatch.setenv("MATCH_MAX_WORKERS", "1")
    from lease_match.app.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestRunEndpoint:

    async def test_run_persists_and_reports(self, db_session, make_broker_listing, make_solicitation):
        await make_broker_listing()
        await make_broker_listing(state="VA", city="Arlington")
        await make_solicitation()

        async with _build_app_client(db_session) as client:
            resp = await client.post("/api/matching/run", json={"min_score": 40, "chunk_size": 1})

        assert resp.status_code == 200
        data = resp.json()
        assert data["processed"] == 2
        assert data["matched"] == 1
        assert data["persisted"] == 1
        assert data["early_termination_reasons"]["STATE_MISMATCH"] == 1
        assert data["performance"]["chunk_metrics"][0]["listings_in_chunk"] == 1

    async def test_run_without_body_uses_defaults(self, db_session):
        async with _build_app_client(db_session) as client:
            resp = await client.post("/api/matching/run")

        assert resp.status_code == 200
        assert resp.json()["errors"] == ["No active properties found"]

    @pytest.mark.parametrize("body", [{"chunk_size": 0}, {"min_score": 150}, {"min_score": -5}])
    async def test_run_rejects_invalid_parameters(self, db_session, body):
        async with _build_app_client(db_session) as client:
            resp = await client.post("/api/matching/run", json=body)
        assert resp.status_code == 422


class TestCalculateMatch:

    async def test_scores_and_stores_pair(self, db_session, make_broker_listing, make_solicitation):
        listing = await make_broker_listing(with_broker=True)
        solicitation = await make_solicitation()

        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/scoring/calculate-match",
                json={"listing_id": listing.id, "solicitation_id": solicitation.id},
            )

        assert resp.status_code == 200
        data = resp.json()
        assert data["listing_id"] == listing.id
        assert data["solicitation_id"] == solicitation.id
        assert data["qualified"] is True
        assert data["experience"]["breakdown"]["has_gov_experience"] is True
        assert set(data) >= {"location", "space", "building", "timeline", "overall_score", "grade"}

        row = (await db_session.execute(select(PropertyMatch))).scalar_one()
        assert row.overall_score == data["overall_score"]

    async def test_missing_listing(self, db_session, make_solicitation):
        solicitation = await make_solicitation()
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/scoring/calculate-match",
                json={"listing_id": "missing", "solicitation_id": solicitation.id},
            )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Listing not found"

    async def test_missing_solicitation(self, db_session, make_broker_listing):
        listing = await make_broker_listing()
        async with _build_app_client(db_session) as client:
            resp = await client.post(
                "/api/scoring/calculate-match",
                json={"listing_id": listing.id, "solicitation_id": "missing"},
            )
        assert resp.status_code == 404
        assert resp.json()["detail"] == "Solicitation not found"


class TestListMatches:

    async def test_filters_and_orders(self, db_session, make_broker_listing, make_solicitation):
        strong = await make_broker_listing()
        weak = await make_broker_listing(building_class="C", available_sqft=33000)
        solicitation = await make_solicitation()

        async with _build_app_client(db_session) as client:
            await client.post("/api/matching/run", json={"min_score": 0})
            everything = (await client.get("/api/matching/matches")).json()
            only_weak = (await client.get(
                "/api/matching/matches", params={"listing_id": weak.id}
            )).json()
            high = (await client.get(
                "/api/matching/matches",
                params={"solicitation_id": solicitation.id, "min_score": 80},
            )).json()

        assert [m["listing_id"] for m in everything] == [strong.id, weak.id]
        assert everything[0]["overall_score"] >= everything[1]["overall_score"]
        assert [m["listing_id"] for m in only_weak] == [weak.id]
        assert [m["listing_id"] for m in high] == [strong.id]
