from datetime import timedelta

from fastapi.testclient import TestClient

from engagement_engine.main import app
from engagement_engine.db import SessionLocal, utcnow
from engagement_engine import models
from engagement_engine.recompute import RecomputeError

client = TestClient(app)


def _mk_account(n_clients=1):
    with SessionLocal() as db:
        a = models.Account(name="Acme")
        db.add(a); db.flush()
        cs = [models.Client(account_id=a.id, name=f"C{i}") for i in range(n_clients)]
        db.add_all(cs); db.commit()
        return a.id, [c.id for c in cs]


def test_index():
    r = client.get("/")
    assert r.status_code == 200
    assert r.json()["docs"] == "/docs"


def test_recompute_one_account_then_read_latest():
    account_id, (client_id,) = _mk_account()
    with SessionLocal() as db:
        db.add(models.ValueEvent(account_id=account_id, client_id=client_id, roi_type="intangible",
                                 category="confidence", impact="high", source="google_meet",
                                 happened_at=utcnow() - timedelta(days=1)))
        db.commit()

    r = client.post("/api/recompute-scores", json={"account_id": account_id})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["message"] == "Processed 1 clients"
    assert body["results"] == [{"account_id": account_id, "clients_processed": 1, "errors": []}]

    r2 = client.get(f"/api/clients/{client_id}/scores/latest")
    assert r2.status_code == 200
    snap = r2.json()
    assert snap["roizometer"] == 30   # 3 × 2.0 × 5
    assert snap["escore"] == 0
    assert snap["quadrant"] == "lowE_lowROI"
    assert snap["trend"] == "flat"


def test_recompute_single_client_and_history():
    account_id, (c1, c2) = _mk_account(n_clients=2)
    for _ in range(2):
        r = client.post("/api/recompute-scores", json={"account_id": account_id, "client_id": c2})
        assert r.status_code == 200
        assert r.json()["results"][0]["clients_processed"] == 1

    hist = client.get(f"/api/clients/{c2}/scores")
    assert hist.status_code == 200
    assert len(hist.json()) == 2
    assert hist.json()[0]["id"] > hist.json()[1]["id"]

    assert client.get(f"/api/clients/{c1}/scores/latest").status_code == 404


def test_recompute_without_body_processes_all_accounts():
    account_id, _ = _mk_account()
    r = client.post("/api/recompute-scores")
    assert r.status_code == 200
    ids = [res["account_id"] for res in r.json()["results"]]
    assert account_id in ids


def test_recompute_rejects_bad_ids():
    r = client.post("/api/recompute-scores", json={"account_id": "not-a-number"})
    assert r.status_code == 422


def test_run_level_failure_returns_500(monkeypatch):
    def broken(*args, **kwargs):
        raise RecomputeError("Failed to fetch accounts: connection refused")

    monkeypatch.setattr("engagement_engine.routers.scores.recompute_scores", broken)
    r = client.post("/api/recompute-scores", json={})
    assert r.status_code == 500
    assert r.json() == {"error": "Failed to fetch accounts: connection refused"}


def test_unknown_client_404():
    assert client.get("/api/clients/999999/scores/latest").status_code == 404
    assert client.get("/api/clients/999999/scores").status_code == 404
    assert client.get("/api/clients/999999/vnps/latest").status_code == 404


def test_quadrant_summary():
    account_id, clients = _mk_account(n_clients=3)
    client.post("/api/recompute-scores", json={"account_id": account_id})

    r = client.get(f"/api/accounts/{account_id}/quadrants")
    assert r.status_code == 200
    body = r.json()
    assert body["total"] == 3
    assert body["quadrants"]["lowE_lowROI"] == 3
    assert body["trends"]["flat"] == 3
    assert body["avg_escore"] == 0.0

    assert client.get("/api/accounts/999999/quadrants").status_code == 404
