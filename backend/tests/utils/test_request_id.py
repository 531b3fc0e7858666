import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from restaurant_booking.main import request_id_middleware
from restaurant_booking.utils.request_id import bound_request_id, current_request_id, new_request_id


def test_bound_request_id_is_reset_after_block() -> None:
    assert current_request_id() is None
    with bound_request_id("req-abc") as value:
        assert value == "req-abc"
        assert current_request_id() == "req-abc"
    assert current_request_id() is None


def test_bound_request_id_generates_when_missing() -> None:
    with bound_request_id("") as value:
        assert value
        assert current_request_id() == value


def test_new_request_ids_differ() -> None:
    assert new_request_id() != new_request_id()


def _app() -> FastAPI:
    app = FastAPI()

    @app.get("/check")
    async def check() -> dict[str, str]:
        return {"rid": current_request_id() or ""}

    app.middleware("http")(request_id_middleware)
    return app


@pytest.mark.asyncio
async def test_request_id_middleware_generates_and_sets_header() -> None:
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID")
    assert resp.json()["rid"] == resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_middleware_uses_incoming_header() -> None:
    incoming = "req-custom-123"
    transport = ASGITransport(app=_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers={"X-Request-ID": incoming}) as client:
        resp = await client.get("/check")
    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == incoming
    assert resp.json()["rid"] == incoming
