from __future__ import annotations

from fastapi import Depends
from fastapi.testclient import TestClient

from taskboard.app.deps.realtime_deps import get_update_publisher
from taskboard.app.http_app import create_app
from taskboard.services.realtime.update_publisher import UpdatePublisher


def _client(settings, services) -> TestClient:
    return TestClient(create_app(settings=settings, realtime=services))


def test_updates_polling_flow(settings, services) -> None:
    board = {"id": 42, "name": "Sprint"}
    for i in range(3):
        services.publisher.publish(board, "card.created", {"cardId": i})
    client = _client(settings, services)

    first = client.get("/api/boards/42/updates")
    assert first.status_code == 200
    body = first.json()
    assert body["latestId"] == 3
    assert body["retry"] == 3000
    assert [e["id"] for e in body["events"]] == [3]
    assert set(body["events"][0]) == {"id", "event", "boardId", "payload", "snapshot", "createdAt"}

    delta = client.get("/api/boards/42/updates", params={"since": 1}).json()
    assert [e["id"] for e in delta["events"]] == [2, 3]
    assert delta["latestId"] == 3

    empty = client.get("/api/boards/42/updates", params={"since": ""}).json()
    assert [e["id"] for e in empty["events"]] == [3]


def test_invalid_cursor_is_rejected(settings, services) -> None:
    client = _client(settings, services)
    for bad in ("abc", "-1", "1.5"):
        resp = client.get("/api/boards/42/updates", params={"since": bad})
        assert resp.status_code == 400
        assert resp.json()["success"] is False


def test_updates_when_backend_is_down(settings, failed_services) -> None:
    client = _client(settings, failed_services)
    resp = client.get("/api/boards/9/updates", params={"since": 5})
    assert resp.status_code == 200
    assert resp.json() == {"events": [], "latestId": 5, "retry": 3000}


def test_snapshot_and_cursor_endpoints(settings, services) -> None:
    client = _client(settings, services)
    assert client.get("/api/boards/42/snapshot").status_code == 404
    assert client.get("/api/boards/42/cursor").json()["data"] == {"boardId": 42, "latestId": None}

    services.publisher.publish({"id": 42, "name": "Sprint"}, "board.created", {})

    snap = client.get("/api/boards/42/snapshot").json()
    assert snap["success"] is True
    assert snap["data"] == {"id": 42, "name": "Sprint"}
    assert client.get("/api/boards/42/cursor").json()["data"] == {"boardId": 42, "latestId": 1}


def test_health_endpoints(settings, services, failed_services) -> None:
    assert _client(settings, services).get("/v1/health").json()["data"] == {"status": "ok"}

    ok = _client(settings, services).get("/v1/health/redis")
    assert ok.status_code == 200
    assert ok.json()["data"]["state"] == "connected"

    down = _client(settings, failed_services).get("/v1/health/redis")
    assert down.status_code == 503
    assert down.json()["data"]["state"] == "failed"


def test_lifespan_closes_connection(settings, services, fake_redis) -> None:
    with _client(settings, services) as client:
        client.get("/api/boards/1/updates")
    assert fake_redis.closed is True


def test_domain_route_publishes_through_injected_publisher(settings, services, failed_services) -> None:
    def _app_with_card_route(realtime):
        app = create_app(settings=settings, realtime=realtime)

        @app.post("/api/boards/{board_id}/cards")
        def create_card(board_id: int, publisher: UpdatePublisher = Depends(get_update_publisher)):
            board = {"id": board_id, "name": "Sprint"}
            publisher.publish(board, "card.created", {"cardId": 77})
            return {"id": 77}

        return TestClient(app)

    client = _app_with_card_route(services)
    assert client.post("/api/boards/42/cards").json() == {"id": 77}
    updates = client.get("/api/boards/42/updates", params={"since": 0}).json()
    assert [(e["event"], e["payload"]) for e in updates["events"]] == [("card.created", {"cardId": 77})]

    # the domain write still succeeds when notifications are unavailable
    down = _app_with_card_route(failed_services)
    resp = down.post("/api/boards/42/cards")
    assert resp.status_code == 200
    assert resp.json() == {"id": 77}
