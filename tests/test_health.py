# =============================================================================
# tests/test_health.py - Health Endpoint Tests
# =============================================================================

import asyncio

from core.services.connection_service import ConnectionSupervisor


async def ok() -> None:
    return None


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["environment"] == "development"

    def test_live(self, client):
        response = client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestReadiness:

    def test_not_ready_without_supervisor(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "unavailable"
        assert response.json()["database"] is None

    def test_not_ready_while_connecting(self, client, settings):
        client.app.state.connection = ConnectionSupervisor(ok, settings)

        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["database"]["state"] == "connecting"

    def test_ready_when_connected(self, client, settings):
        supervisor = ConnectionSupervisor(ok, settings)
        asyncio.run(supervisor.run())
        client.app.state.connection = supervisor

        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["database"]["state"] == "connected"
        assert response.json()["database"]["attempts"] == 1
