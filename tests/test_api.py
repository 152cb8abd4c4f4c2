from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from hackjudge.main import app


@pytest.fixture
def client() -> TestClient:
    return TestClient(app)


def test_stress_test_endpoint(client: TestClient, feasible_config):
    r = client.post("/api/stress-test", json=feasible_config.model_dump(mode="json"))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["passed"] is True
    assert body["metrics"]["time_per_project"] == pytest.approx(24.0)

    broken = feasible_config.model_dump(mode="json")
    broken["judges_per_project"] = 1
    body = client.post("/api/stress-test", json=broken).json()
    assert body["passed"] is False
    assert [e[:3] for e in body["errors"]] == ["(K)"]


def test_assignments_endpoint_is_seeded(client: TestClient):
    payload = {
        "judges": [{"id": f"j{i}", "name": f"J{i}"} for i in range(4)],
        "projects": [{"id": f"p{i}", "name": f"P{i}", "table": str(i + 1)} for i in range(6)],
        "rounds_per_project": 2,
        "seed": 9,
    }
    first = client.post("/api/assignments", json=payload).json()
    second = client.post("/api/assignments", json=payload).json()
    assert first["count"] == 12
    strip = lambda plan: [(a["judge_id"], a["project_id"]) for a in plan["assignments"]]
    assert strip(first) == strip(second)


def test_leaderboard_and_csv(client: TestClient):
    payload = {
        "projects": [{"id": "A", "name": "Alpha", "table": "1"}, {"id": "B", "name": "Beta", "table": "2"}],
        "scores": [
            {"judge_id": "j1", "project_id": "A", "criteria": {"c": 3}},
            {"judge_id": "j1", "project_id": "B", "criteria": {"c": 2}},
        ],
        "criteria": [{"id": "c", "name": "Overall"}],
    }
    rows = client.post("/api/leaderboard", json=payload).json()
    assert [(r["project_id"], r["rank_points"]) for r in rows] == [("A", 5), ("B", 4)]

    r = client.post("/api/leaderboard.csv", json=payload)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "judging_results_OVERALL.csv" in r.headers["content-disposition"]
    assert r.text.splitlines()[0] == "Rank,Table,Project Name,Times Judged,Rank Points,Raw Avg"


def test_leaderboard_rejects_duplicate_score_keys(client: TestClient):
    payload = {
        "projects": [{"id": "A", "name": "Alpha"}],
        "scores": [
            {"judge_id": "j1", "project_id": "A", "criteria": {"c": 3}},
            {"judge_id": "j1", "project_id": "A", "criteria": {"c": 1}},
        ],
        "criteria": [{"id": "c", "name": "Overall"}],
    }
    r = client.post("/api/leaderboard", json=payload)
    assert r.status_code == 422
    assert "Duplicate score" in r.json()["detail"]


def test_non_positive_weight_is_rejected(client: TestClient):
    payload = {"projects": [], "criteria": [{"id": "c", "name": "Overall", "weight": 0}]}
    assert client.post("/api/leaderboard", json=payload).status_code == 422


def test_status_and_coverage(client: TestClient):
    projects = [{"id": "A", "name": "Alpha", "table": "1"}, {"id": "B", "name": "Beta", "table": "2", "no_show": True}]
    scores = [{"judge_id": "j1", "project_id": "A"}]
    body = client.post("/api/status", json={"projects": projects, "scores": scores, "judges_per_project": 2}).json()
    assert [p["status"] for p in body["projects"]] == ["yellow", "purple"]
    assert body["summary"]["status_counts"]["yellow"] == 1

    body = client.post("/api/coverage", json={
        "judges": [{"id": "j1", "name": "One"}],
        "projects": projects,
        "scores": scores,
        "assignments": [{"judge_id": "j1", "project_id": "A"}],
    }).json()
    assert body["rows"][0] == {"project_id": "A", "cells": {"j1": "scored"}}
    assert body["assignments"][0]["status"] == "completed"


def test_report_verification_flow(client: TestClient):
    projects = [{"id": "A", "name": "Alpha"}]
    filed = client.post("/api/reports", json={"judge_id": "j1", "project_id": "A", "kind": "no-show"}).json()
    report_id = filed["reports"][0]["id"]

    body = client.post(f"/api/reports/{report_id}/verify", json={"reports": filed["reports"], "projects": projects}).json()
    assert body["projects"][0]["no_show"] is True
    assert body["reports"][0]["status"] == "verified"

    r = client.post("/api/reports/missing/dismiss", json={"reports": filed["reports"]})
    assert r.status_code == 404


def test_remove_judge_endpoint(client: TestClient):
    body = client.post("/api/judges/j1/remove", json={
        "judges": [{"id": "j1", "name": "One"}],
        "scores": [{"judge_id": "j1", "project_id": "A"}],
    }).json()
    assert body["judges"] == [] and body["scores"] == []
    assert client.post("/api/judges/ghost/remove", json={}).status_code == 404


def test_score_submission(client: TestClient):
    payload = {
        "project": {"id": "A", "name": "Alpha", "table": "1", "categories": ["Sustainability"]},
        "criteria": [{"id": "c", "name": "Overall"}, {"id": "s", "name": "Sustainability"}],
        "organizer_categories": ["Sustainability"],
        "score": {"judge_id": "j1", "project_id": "A", "criteria": {"c": 3}},
    }
    r = client.post("/api/scores", json=payload)
    assert r.status_code == 422
    assert "Sustainability" in r.json()["detail"]

    payload["score"]["criteria"]["s"] = 2
    r = client.post("/api/scores", json=payload)
    assert r.status_code == 200, r.text
    scores = r.json()["scores"]
    assert len(scores) == 1 and scores[0]["criteria"] == {"c": 3, "s": 2}

    payload["scores"] = scores
    payload["score"]["criteria"]["c"] = 1
    scores = client.post("/api/scores", json=payload).json()["scores"]
    assert len(scores) == 1 and scores[0]["criteria"]["c"] == 1
