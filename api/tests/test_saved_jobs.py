from __future__ import annotations

from fastapi.testclient import TestClient


def test_save_is_idempotent_and_listed_with_job(api_client: TestClient) -> None:
    job = api_client.post("/jobs", json={"client_id": "c1", "title": "Paint fence"}).json()

    first = api_client.post("/saved-jobs", json={"user_id": "w1", "job_id": job["id"]})
    second = api_client.post("/saved-jobs", json={"user_id": "w1", "job_id": job["id"]})

    assert first.status_code == 201
    assert first.json()["id"] == second.json()["id"]
    saved = api_client.get("/saved-jobs/w1").json()
    assert len(saved) == 1
    assert saved[0]["job"]["title"] == "Paint fence"


def test_save_unknown_job_is_404(api_client: TestClient) -> None:
    response = api_client.post("/saved-jobs", json={"user_id": "w1", "job_id": "missing"})
    assert response.status_code == 404


def test_unsave(api_client: TestClient) -> None:
    job = api_client.post("/jobs", json={"client_id": "c1", "title": "Paint fence"}).json()
    api_client.post("/saved-jobs", json={"user_id": "w1", "job_id": job["id"]})

    assert api_client.delete(f"/saved-jobs/w1/{job['id']}").status_code == 200
    assert api_client.delete(f"/saved-jobs/w1/{job['id']}").status_code == 404
    assert api_client.get("/saved-jobs/w1").json() == []
