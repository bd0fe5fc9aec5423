"""
Rate limiting through the app hooks, and Store persistence / TTL behaviour.
"""

import pytest

from rentari import create_app
from rentari.models.store import Store


@pytest.fixture
def limited_app(tmp_path):
    app = create_app({
        "TESTING": True,
        "DATA_PATH": str(tmp_path / "data.pkl"),
        "SWEEPER_ENABLED": False,
        "RATELIMIT_ENABLED": True,
        "RATELIMIT_GLOBAL": (5, 900),
        "RATELIMIT_AUTH": (2, 300),
    })
    return app


def test_auth_routes_have_a_stricter_limit(limited_app):
    client = limited_app.test_client()
    body = {"correo": "nobody@gmail.com", "contrasenya": "Secret12!"}

    first = client.put("/usuarios/login", json=body)
    assert first.status_code == 403
    assert first.headers["RateLimit-Limit"] == "2"
    assert first.headers["RateLimit-Remaining"] == "1"

    assert client.put("/usuarios/login", json=body).status_code == 403
    resp = client.put("/usuarios/login", json=body)
    assert resp.status_code == 429
    assert resp.get_json()["error"] is True

    # other routes still answer until the global budget runs out
    assert client.get("/health").status_code == 200


def test_global_limit(limited_app):
    client = limited_app.test_client()
    for _ in range(5):
        assert client.get("/health").status_code == 200
    resp = client.get("/health")
    assert resp.status_code == 429
    assert "Too many requests" in resp.get_json()["message"]


def test_profile_is_exempt_from_auth_limit(limited_app):
    client = limited_app.test_client()
    for _ in range(3):
        assert client.get("/usuarios/profile").status_code == 403


# ---------- store ----------
def test_store_persists_between_instances(tmp_path):
    path = tmp_path / "data.pkl"
    store = Store(path)
    vid = store.insert("vehicles", {"name": "Seat Ibiza"}, id_field="vehicle_id")

    reloaded = Store(path)
    assert reloaded.get("vehicles", vid)["name"] == "Seat Ibiza"


def test_store_reads_are_copies(tmp_path):
    store = Store(tmp_path / "data.pkl")
    vid = store.insert("vehicles", {"name": "Seat Ibiza", "tags": []}, id_field="vehicle_id")
    doc = store.get("vehicles", vid)
    doc["tags"].append("mutated")
    assert store.get("vehicles", vid)["tags"] == []


def test_store_conditional_update(tmp_path):
    store = Store(tmp_path / "data.pkl")
    vid = store.insert("vehicles", {"state": "available"}, id_field="vehicle_id")
    assert store.update_one("vehicles", {"vehicle_id": vid, "state": "available"}, {"state": "reserved"})
    assert store.update_one("vehicles", {"vehicle_id": vid, "state": "available"}, {"state": "reserved"}) is None


def test_store_ttl_index(tmp_path, clock):
    store = Store(tmp_path / "data.pkl")
    store.insert("pending", {"session_id": "s1", "created_at": clock.now}, id_field="pending_id")
    store.insert("vehicles", {"created_at": clock.now}, id_field="vehicle_id")
    clock.advance(minutes=15)
    assert store.count("pending") == 0
    assert store.count("vehicles") == 1


def test_store_rejects_unknown_collection(tmp_path):
    with pytest.raises(KeyError):
        Store(tmp_path / "data.pkl").find("rentals")


def test_incompatible_file_is_backed_up(tmp_path):
    import pickle

    path = tmp_path / "data.pkl"
    path.write_bytes(pickle.dumps({"users": {}, "rentals": {}}))
    store = Store(path)
    assert store.count("vehicles") == 0
    assert (tmp_path / "data.pkl.bak").exists()
