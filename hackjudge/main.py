from __future__ import annotations

import logging
from typing import Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from hackjudge.assignment import default_rng, plan_assignments, suggest_next_project, sync_assignment_status
from hackjudge.config import Config
from hackjudge.models import (
    Assignment,
    Criterion,
    EventConfig,
    Judge,
    LeaderboardRow,
    Project,
    Report,
    ReportKind,
    Score,
    StressTestResult,
    duplicate_keys,
)
from hackjudge.ranking import build_leaderboard, classify_status, coverage_matrix, leaderboard_csv, status_summary
from hackjudge.reports import dismiss_report, file_report, remove_judge, remove_project, set_no_show, verify_report
from hackjudge.scoring import IncompleteScoreError, submit_score
from hackjudge.stress_test import validate_feasibility

logging.basicConfig(level=Config.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="hackjudge", description="Hackathon judging planner and leaderboard.")
app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


# -----------------------
# Request bodies (every call carries its own snapshot)
# -----------------------
class AssignmentRequest(BaseModel):
    judges: List[Judge]
    projects: List[Project]
    rounds_per_project: int = Field(default_factory=lambda: Config.DEFAULT_JUDGES_PER_PROJECT)
    seed: Optional[int] = None


class StatusRequest(BaseModel):
    projects: List[Project]
    scores: List[Score] = Field(default_factory=list)
    judges_per_project: int = Field(default_factory=lambda: Config.DEFAULT_JUDGES_PER_PROJECT)
    category: Optional[str] = None


class LeaderboardRequest(BaseModel):
    projects: List[Project]
    scores: List[Score] = Field(default_factory=list)
    criteria: List[Criterion] = Field(default_factory=list)
    organizer_categories: List[str] = Field(default_factory=list)
    category: Optional[str] = None


class CoverageRequest(BaseModel):
    judges: List[Judge]
    projects: List[Project]
    scores: List[Score] = Field(default_factory=list)
    assignments: List[Assignment] = Field(default_factory=list)
    category: Optional[str] = None


class WorklistRequest(BaseModel):
    judge_id: str
    projects: List[Project]
    scores: List[Score] = Field(default_factory=list)
    assignments: List[Assignment] = Field(default_factory=list)
    seed: Optional[int] = None


class SubmitScoreRequest(BaseModel):
    score: Score
    project: Project
    scores: List[Score] = Field(default_factory=list)
    criteria: List[Criterion] = Field(default_factory=list)
    organizer_categories: List[str] = Field(default_factory=list)


class FileReportRequest(BaseModel):
    judge_id: str
    project_id: str
    kind: ReportKind
    reports: List[Report] = Field(default_factory=list)


class ReportsRequest(BaseModel):
    reports: List[Report]
    projects: List[Project] = Field(default_factory=list)


class RosterRequest(BaseModel):
    judges: List[Judge] = Field(default_factory=list)
    projects: List[Project] = Field(default_factory=list)
    scores: List[Score] = Field(default_factory=list)
    assignments: List[Assignment] = Field(default_factory=list)
    reports: List[Report] = Field(default_factory=list)


def require_unique_scores(scores: List[Score]) -> None:
    dups = duplicate_keys(scores)
    if dups:
        judge_id, project_id = dups[0]
        raise HTTPException(
            422, f"Duplicate score for judge {judge_id} on project {project_id}. Upsert scores by key."
        )


# -----------------------
# Routes: Planning
# -----------------------
@app.post("/api/stress-test", response_model=StressTestResult)
def stress_test(config: EventConfig):
    return validate_feasibility(config)


@app.post("/api/assignments")
def assignments(req: AssignmentRequest) -> Dict:
    plan = plan_assignments(req.judges, req.projects, req.rounds_per_project, rng=default_rng(req.seed))
    return {"assignments": [a.model_dump(mode="json") for a in plan], "count": len(plan)}


# -----------------------
# Routes: Live judging
# -----------------------
@app.post("/api/status")
def status(req: StatusRequest) -> Dict:
    shown = [p for p in req.projects if not req.category or req.category in p.categories]
    return {
        "projects": [
            {"project_id": p.id, "table": p.table,
             "status": classify_status(p, req.scores, req.judges_per_project).value}
            for p in shown
        ],
        "summary": status_summary(req.projects, req.scores, req.judges_per_project, req.category),
    }


@app.post("/api/coverage")
def coverage(req: CoverageRequest) -> Dict:
    matrix = coverage_matrix(req.judges, req.projects, req.scores, req.assignments, req.category)
    return {
        "judges": list(matrix.columns),
        "rows": [{"project_id": pid, "cells": row.to_dict()} for pid, row in matrix.iterrows()],
        "assignments": [a.model_dump(mode="json") for a in sync_assignment_status(req.assignments, req.scores)],
    }


@app.post("/api/next-project")
def next_project(req: WorklistRequest) -> Dict:
    project = suggest_next_project(
        req.judge_id, req.projects, req.assignments, req.scores, rng=default_rng(req.seed)
    )
    return {"project": project.model_dump(mode="json") if project else None}


@app.post("/api/scores")
def create_score(req: SubmitScoreRequest) -> Dict:
    try:
        scores = submit_score(req.scores, req.score, req.project, req.criteria, req.organizer_categories)
    except IncompleteScoreError as e:
        raise HTTPException(422, str(e))
    return {"scores": [s.model_dump(mode="json") for s in scores]}


@app.post("/api/leaderboard", response_model=List[LeaderboardRow])
def leaderboard(req: LeaderboardRequest):
    require_unique_scores(req.scores)
    return build_leaderboard(req.projects, req.scores, req.criteria, req.organizer_categories, req.category)


@app.post("/api/leaderboard.csv")
def download_leaderboard(req: LeaderboardRequest):
    require_unique_scores(req.scores)
    rows = build_leaderboard(req.projects, req.scores, req.criteria, req.organizer_categories, req.category)
    return Response(
        content=leaderboard_csv(rows),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="judging_results_{req.category or "OVERALL"}.csv"'},
    )


# -----------------------
# Routes: Reports and roster
# -----------------------
@app.post("/api/reports")
def create_report(req: FileReportRequest) -> Dict:
    reports = file_report(req.reports, req.judge_id, req.project_id, req.kind)
    return {"reports": [r.model_dump(mode="json") for r in reports]}


@app.post("/api/reports/{report_id}/verify")
def verify(report_id: str, req: ReportsRequest) -> Dict:
    try:
        reports, projects = verify_report(report_id, req.reports, req.projects)
    except KeyError as e:
        raise HTTPException(404, e.args[0])
    return {
        "reports": [r.model_dump(mode="json") for r in reports],
        "projects": [p.model_dump(mode="json") for p in projects],
    }


@app.post("/api/reports/{report_id}/dismiss")
def dismiss(report_id: str, req: ReportsRequest) -> Dict:
    try:
        reports = dismiss_report(report_id, req.reports)
    except KeyError as e:
        raise HTTPException(404, e.args[0])
    return {"reports": [r.model_dump(mode="json") for r in reports]}


def _roster_response(judges, projects, scores, assignments, reports) -> Dict:
    return {
        "judges": [j.model_dump(mode="json") for j in judges],
        "projects": [p.model_dump(mode="json") for p in projects],
        "scores": [s.model_dump(mode="json") for s in scores],
        "assignments": [a.model_dump(mode="json") for a in assignments],
        "reports": [r.model_dump(mode="json") for r in reports],
    }


@app.post("/api/judges/{judge_id}/remove")
def delete_judge(judge_id: str, req: RosterRequest) -> Dict:
    try:
        judges, scores, assignments, reports = remove_judge(
            judge_id, req.judges, req.scores, req.assignments, req.reports
        )
    except KeyError as e:
        raise HTTPException(404, e.args[0])
    return _roster_response(judges, req.projects, scores, assignments, reports)


@app.post("/api/projects/{project_id}/remove")
def delete_project(project_id: str, req: RosterRequest) -> Dict:
    try:
        projects, scores, assignments, reports = remove_project(
            project_id, req.projects, req.scores, req.assignments, req.reports
        )
    except KeyError as e:
        raise HTTPException(404, e.args[0])
    return _roster_response(req.judges, projects, scores, assignments, reports)


@app.post("/api/projects/{project_id}/no-show")
def toggle_no_show(project_id: str, req: RosterRequest, no_show: bool = True) -> Dict:
    try:
        projects = set_no_show(project_id, req.projects, no_show)
    except KeyError as e:
        raise HTTPException(404, e.args[0])
    return {"projects": [p.model_dump(mode="json") for p in projects]}
