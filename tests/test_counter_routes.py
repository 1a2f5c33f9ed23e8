import pytest
from fastapi.testclient import TestClient

from labloop.constants.id_prefixes import MAX_SEQUENCE
from labloop.services.id_allocator import IdAllocator, get_id_allocator


def test_health_check(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_counter_info_unknown_prefix_is_404(client):
    response = client.get("/admin/counters/PAT")

    assert response.status_code == 404


def test_counter_info_after_allocation(client, allocator):
    allocator.allocate("PAT")

    response = client.get("/admin/counters/PAT")

    assert response.status_code == 200
    assert response.json() == {
        "prefix": "PAT",
        "sequence": 1,
        "next_id": "PAT00000002",
        "remaining": 99999998,
    }


def test_next_id_preview(client, allocator):
    allocator.allocate("CASE")

    first = client.get("/admin/counters/CASE/next")
    second = client.get("/admin/counters/CASE/next")

    assert first.json() == {"prefix": "CASE", "next_id": "CASE00000002"}
    assert second.json() == first.json()


def test_list_counters(client, allocator):
    allocator.allocate("USR")
    allocator.allocate("LAB")

    response = client.get("/admin/counters")

    assert response.status_code == 200
    assert [c["prefix"] for c in response.json()] == ["LAB", "USR"]


def test_invalid_prefix_is_422(client):
    response = client.get("/admin/counters/pa1/next")

    assert response.status_code == 422
    assert response.json()["error"] == "InvalidPrefix"


def test_reset_then_allocate(client, allocator):
    response = client.post("/admin/counters/USR/reset", json={"start_from": 41})

    assert response.status_code == 204
    assert allocator.allocate("USR") == "USR00000042"


@pytest.mark.parametrize("start_from", [-1, MAX_SEQUENCE + 1])
def test_reset_out_of_range_is_422(client, start_from):
    response = client.post("/admin/counters/USR/reset", json={"start_from": start_from})

    assert response.status_code == 422


def test_reset_forbidden_is_403(client, app, session_factory):
    locked = IdAllocator(session_factory, allow_reset=False)
    app.dependency_overrides[get_id_allocator] = lambda: locked

    response = client.post("/admin/counters/USR/reset", json={"start_from": 0})

    assert response.status_code == 403
    assert response.json()["error"] == "CounterResetForbidden"


def test_exhausted_counter_next_is_409(client, allocator):
    allocator.reset("INV", MAX_SEQUENCE)

    response = client.get("/admin/counters/INV/next")

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "CounterOverflow"
    assert body["prefix"] == "INV"
    assert "overflow" in body["detail"]


def test_admin_routes_hidden_from_unlisted_ips(app, allocator):
    app.dependency_overrides[get_id_allocator] = lambda: allocator
    # TestClient connects as host "testclient", which is not an allowed IP
    response = TestClient(app).get("/admin/counters")

    assert response.status_code == 404
    assert response.json() == {"detail": "Not Found"}
