from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import IntegrityError

from eduplatform.core.error_handlers import register_exception_handlers

from .conftest import API


def build_app() -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/boom")
    async def boom():
        raise RuntimeError("database password is hunter2")

    @app.get("/duplicate")
    async def duplicate():
        raise IntegrityError("INSERT ...", {}, Exception("UNIQUE constraint failed"))

    return app


async def test_unhandled_errors_do_not_leak_internals():
    transport = ASGITransport(app=build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "type": "InternalError"}
    assert "hunter2" not in response.text


async def test_integrity_errors_map_to_conflict():
    transport = ASGITransport(app=build_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/duplicate")

    assert response.status_code == 409
    assert response.json()["type"] == "IntegrityError"


async def test_unknown_route_uses_error_shape(client):
    response = await client.get(f"{API}/nowhere")

    assert response.status_code == 404
    assert response.json() == {"error": "Not Found", "type": "HTTPException"}


async def test_malformed_uuid_is_validation_error(client):
    response = await client.get(f"{API}/courses/not-a-uuid")

    assert response.status_code == 400
    assert response.json()["type"] == "ValidationError"
    assert response.json()["details"]
