from unittest.mock import patch


async def test_health_reports_connected_database(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == "connected"
    assert body["version"]
    assert "timestamp" in body


async def test_health_stays_200_when_database_is_down(client):
    async def failing_check():
        return False

    with patch("eduplatform.routers.health.health_check_db", failing_check):
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "unhealthy"
    assert response.json()["database"] == "disconnected"


async def test_responses_carry_process_time_header(client):
    response = await client.get("/")

    assert response.status_code == 200
    assert "x-process-time" in response.headers
    assert response.json()["api"] == "/api"
