"""API endpoint integration tests.

Tests the FastAPI endpoints for period finalization.
"""

from collections.abc import AsyncGenerator
from decimal import Decimal
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from finalization_engine.api.app import create_app
from finalization_engine.api.dependencies import get_db_session
from finalization_engine.database import get_engine, make_session_factory

pytestmark = pytest.mark.asyncio

PERIOD = {"periodStart": "2024-01-01", "periodEnd": "2024-01-14"}


def body(seeded, **overrides) -> dict:
    payload = {
        "companyId": str(seeded.company_id),
        "timekeeperId": str(seeded.timekeeper_id),
        **PERIOD,
    }
    payload.update(overrides)
    return payload


class TestHealthEndpoints:
    """Test health check endpoints."""

    async def test_health_check(self, client: AsyncClient):
        """Health endpoint should return 200."""
        response = await client.get("/health")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "healthy"
        assert data["finalizations"] == 0
        assert "timestamp" in data

    async def test_readiness_check(self, client: AsyncClient):
        response = await client.get("/ready")
        assert response.status_code == 200
        assert response.json() == {"status": "ready", "missingTables": []}

    async def test_not_ready_without_schema(self, tmp_path):
        engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'empty.db'}")
        factory = make_session_factory(engine)

        async def empty_db_session() -> AsyncGenerator[AsyncSession, None]:
            async with factory() as session:
                yield session

        app = create_app()
        app.dependency_overrides[get_db_session] = empty_db_session
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as bare:
            ready = await bare.get("/ready")
            health = await bare.get("/health")
        await engine.dispose()

        assert ready.status_code == 503
        assert ready.json()["status"] == "not_ready"
        assert "period_finalizations" in ready.json()["missingTables"]
        assert "leave_payroll_transactions" in ready.json()["missingTables"]
        assert health.json()["status"] == "degraded"
        assert health.json()["finalizations"] is None

    async def test_liveness_check(self, client: AsyncClient):
        response = await client.get("/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestFinalizeEndpoint:
    """POST /api/v1/finalizations."""

    async def test_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/v1/finalizations", json={"periodStart": "2024-01-01"})

        assert response.status_code == 400
        error = response.json()["error"]
        assert "companyId" in error
        assert "timekeeperId" in error

    async def test_malformed_id(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/finalizations", json=body(seeded, companyId="not-a-uuid")
        )

        assert response.status_code == 400
        assert "companyId" in response.json()["error"]

    async def test_empty_scope(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/finalizations", json=body(seeded, timekeeperId=str(uuid4()))
        )

        assert response.status_code == 400
        assert response.json() == {"error": "No employees found for finalization"}

    async def test_preview(self, client: AsyncClient, seeded):
        response = await client.post(
            "/api/v1/finalizations", json=body(seeded, previewOnly=True)
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["preview"] is True
        summary = data["summary"]
        assert summary["totalEmployees"] == 2
        assert Decimal(summary["totalRegularHours"]) == Decimal("110")
        assert Decimal(summary["totalOvertimeHours"]) == Decimal("5")
        assert summary["leaveTransactionsCount"] == 1
        assert Decimal(summary["totalLeaveDeductions"]) == Decimal("692.31")
        assert summary["validationErrors"] == ["Bob Jones: 1 unresolved exceptions"]
        names = {e["name"] for e in summary["employees"]}
        assert names == {"Alice Smith", "Bob Jones"}

    async def test_commit_refused_with_validation_errors(self, client: AsyncClient, seeded):
        response = await client.post("/api/v1/finalizations", json=body(seeded))

        assert response.status_code == 422
        data = response.json()
        assert data["success"] is False
        assert data["error"] == "Validation errors found"
        assert data["validationErrors"] == ["Bob Jones: 1 unresolved exceptions"]
        assert data["summary"]["totalEmployees"] == 2

        listed = await client.get(
            "/api/v1/finalizations", params={"companyId": str(seeded.company_id)}
        )
        assert listed.json()["total"] == 0

    async def test_commit_and_read_back(self, client: AsyncClient, seeded, approve_exception):
        await approve_exception(seeded.pending_exception_id)

        response = await client.post("/api/v1/finalizations", json=body(seeded))

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Finalized 2 employees with 1 leave transactions"
        finalization_id = data["finalizationId"]

        record = await client.get(f"/api/v1/finalizations/{finalization_id}")
        assert record.status_code == 200
        assert record.json()["employeeCount"] == 2
        assert record.json()["leaveTransactionsCreated"] == 1
        assert record.json()["status"] == "finalized"

        leave = await client.get(f"/api/v1/finalizations/{finalization_id}/leave-transactions")
        assert leave.status_code == 200
        items = leave.json()["items"]
        assert len(items) == 1
        assert items[0]["transactionType"] == "unpaid_deduction"
        assert items[0]["days"] == 3
        assert Decimal(items[0]["grossAmount"]) == Decimal("692.31")

        listed = await client.get(
            "/api/v1/finalizations",
            params={"companyId": str(seeded.company_id), **PERIOD},
        )
        assert listed.json()["total"] == 1
        assert listed.json()["items"][0]["id"] == finalization_id

    async def test_recommit_returns_same_id(
        self, client: AsyncClient, seeded, approve_exception
    ):
        await approve_exception(seeded.pending_exception_id)

        first = await client.post("/api/v1/finalizations", json=body(seeded))
        second = await client.post("/api/v1/finalizations", json=body(seeded))

        assert first.json()["finalizationId"] == second.json()["finalizationId"]

    async def test_repair(self, client: AsyncClient, seeded, approve_exception):
        await approve_exception(seeded.pending_exception_id)
        committed = await client.post("/api/v1/finalizations", json=body(seeded))
        finalization_id = committed.json()["finalizationId"]

        response = await client.post(f"/api/v1/finalizations/{finalization_id}/repair")

        assert response.status_code == 200
        data = response.json()
        assert data["finalizationId"] == finalization_id
        assert data["timesheetsSynced"] == 1
        assert data["exceptionsProcessed"] == 1
        assert data["leaveTransactions"] == 1


class TestNotFound:
    """Unknown finalization ids."""

    async def test_get_unknown(self, client: AsyncClient):
        response = await client.get(f"/api/v1/finalizations/{uuid4()}")
        assert response.status_code == 404
        assert "not found" in response.json()["error"]

    async def test_repair_unknown(self, client: AsyncClient):
        response = await client.post(f"/api/v1/finalizations/{uuid4()}/repair")
        assert response.status_code == 404
