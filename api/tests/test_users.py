from __future__ import annotations

from fastapi.testclient import TestClient

from hiremistri.services.users import build_profile_update


def test_unknown_user_is_404(api_client: TestClient) -> None:
    response = api_client.get("/users/nobody")
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


def test_sync_creates_once_and_never_overwrites(api_client: TestClient) -> None:
    created = api_client.post("/auth/sync", json={"uid": "u1", "email": " U1@Example.com "})
    assert created.status_code == 200
    assert created.json()["email"] == "u1@example.com"
    assert created.json()["role"] == "worker"

    again = api_client.post("/auth/sync", json={"uid": "u1", "email": "other@example.com"})
    assert again.json()["email"] == "u1@example.com"

    profile = api_client.get("/users/u1").json()
    assert profile["rating"] == 0
    assert profile["review_count"] == 0


def test_patch_is_non_destructive(api_client: TestClient) -> None:
    api_client.patch("/users/u1", json={"first_name": "Asha", "bio": "Electrician", "skills": [" wiring ", ""]})

    response = api_client.put("/users/u1", json={"first_name": "  ", "bio": None, "city": "Pune"})

    body = response.json()
    assert response.status_code == 200
    assert body["first_name"] == "Asha"
    assert body["bio"] == "Electrician"
    assert body["city"] == "Pune"
    assert body["skills"] == ["wiring"]


def test_allow_unset_clears_fields(api_client: TestClient) -> None:
    api_client.patch("/users/u1", json={"first_name": "Asha", "bio": "Electrician"})

    response = api_client.patch("/users/u1", params={"allow_unset": True}, json={"bio": ""})

    assert response.json()["bio"] is None
    assert response.json()["first_name"] == "Asha"


def test_duplicate_email_is_conflict(api_client: TestClient) -> None:
    api_client.post("/auth/sync", json={"uid": "u1", "email": "taken@example.com"})

    response = api_client.patch("/users/u2", json={"email": "Taken@Example.com"})

    assert response.status_code == 409


def test_build_profile_update_ignores_unknown_keys() -> None:
    set_fields, unset_fields = build_profile_update(
        {"uid": "spoofed", "rating": 5, "is_available": False, "lat": 0.0},
        {"uid": "u1"},
    )

    assert set_fields == {"is_available": False, "lat": 0.0}
    assert unset_fields == set()
