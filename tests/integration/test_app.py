"""
HTTP adapter tests.

Covers the four routes and the failure-kind -> status mapping:
    POST /create, GET /l/{code}, PUT /l/{code}, GET /{id}/stats, GET /health
"""

from datetime import timedelta

from link_platform.config import settings


def _create(client, **payload):
    payload.setdefault("url", "https://example.com")
    response = client.post("/create", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _code(data):
    return data["link"].rsplit("/", 1)[-1]


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_returns_public_link(client):
    data = _create(client, url="https://infobae.com")
    assert data["target"] == "https://infobae.com"
    assert data["valid"] is True
    assert data["link"].startswith(f"{settings.PUBLIC_URL}/l/")
    assert len(_code(data)) == 6


def test_create_does_not_leak_secret(client):
    data = _create(client, password="1234")
    assert "1234" not in str(data)


def test_redirect_and_stats(client):
    code = _code(_create(client))
    response = client.get(f"/l/{code}")
    assert response.status_code == 302
    assert response.headers["location"] == "https://example.com"

    stats = client.get("/1/stats").json()
    assert stats["id"] == 1
    assert stats["originalUrl"] == "https://example.com"
    assert stats["shortCode"] == code
    assert stats["clicks"] == 1
    assert stats["valid"] is True
    assert stats["expiredAt"] is None
    assert stats["hasPassword"] is False
    assert "createdAt" in stats


def test_stats_body_mirrors_projection(client, manager):
    _create(client, password="s3cret")
    body = client.get("/1/stats").json()
    projection = manager.stats(1).as_dict()
    assert set(body) == {
        "id", "originalUrl", "shortCode", "clicks", "createdAt",
        "valid", "expiredAt", "expired", "hasPassword",
    }
    assert len(body) == len(projection)
    assert body["createdAt"] == projection["created_at"].isoformat()
    assert body["hasPassword"] is projection["has_secret"] is True
    assert "secret" not in body and "password" not in body


def test_password_protected_redirect(client):
    code = _code(_create(client, password="1234"))

    missing = client.get(f"/l/{code}")
    assert missing.status_code == 401
    assert missing.json()["statusCode"] == 401

    wrong = client.get(f"/l/{code}", params={"password": "0000"})
    assert wrong.status_code == 401

    ok = client.get(f"/l/{code}", params={"password": "1234"})
    assert ok.status_code == 302

    stats = client.get("/1/stats").json()
    assert stats["hasPassword"] is True
    assert stats["clicks"] == 1
    assert "1234" not in str(stats)


def test_expired_link_is_404(client, clock):
    past = (clock.now - timedelta(seconds=1)).isoformat()
    code = _code(_create(client, expiredAt=past))
    response = client.get(f"/l/{code}")
    assert response.status_code == 404
    assert "expired" in response.json()["message"]


def test_expiry_in_the_future_then_passes(client, clock):
    future = clock.now + timedelta(minutes=5)
    code = _code(_create(client, expiredAt=future.isoformat()))
    assert client.get(f"/l/{code}").status_code == 302

    clock.advance(minutes=6)
    assert client.get(f"/l/{code}").status_code == 404

    stats = client.get("/1/stats").json()
    assert stats["expired"] is True
    assert stats["expiredAt"] == future.isoformat()


def test_invalidate_flow(client):
    code = _code(_create(client))

    first = client.put(f"/l/{code}")
    assert first.status_code == 200
    assert code in first.json()["message"]

    second = client.put(f"/l/{code}")
    assert second.status_code == 400
    assert "already" in second.json()["message"]

    redirect = client.get(f"/l/{code}")
    assert redirect.status_code == 404
    assert "invalidated" in redirect.json()["message"]

    assert client.get("/1/stats").json()["valid"] is False


def test_shared_manager_state(client, manager):
    code = _code(_create(client))
    assert manager.storage.get_by_code(code).target_url == "https://example.com"
