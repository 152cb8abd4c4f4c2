from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple

from hackjudge.models import Assignment, Judge, Project, Report, ReportKind, ReportStatus, Score

logger = logging.getLogger(__name__)


def _find(records, record_id: str, what: str):
    for r in records:
        if r.id == record_id:
            return r
    raise KeyError(f"{what} {record_id} not found.")


# -----------------------
# Judge reports
# -----------------------
def file_report(
    reports: List[Report],
    judge_id: str,
    project_id: str,
    kind: ReportKind,
    now: Optional[datetime] = None,
) -> List[Report]:
    """
    A judge flags a project. Acts as a toggle on the judge's pending report:
    same kind again withdraws it, a different kind replaces it.
    """
    now = now or datetime.utcnow()
    existing = next(
        (r for r in reports
         if r.judge_id == judge_id and r.project_id == project_id and r.status == ReportStatus.PENDING),
        None,
    )
    if existing is None:
        return reports + [Report(judge_id=judge_id, project_id=project_id, kind=kind, timestamp=now)]
    if existing.kind == kind:
        return [r for r in reports if r.id != existing.id]
    return [
        r.model_copy(update={"kind": kind, "timestamp": now}) if r.id == existing.id else r
        for r in reports
    ]


def verify_report(
    report_id: str, reports: List[Report], projects: List[Project]
) -> Tuple[List[Report], List[Project]]:
    """
    Organizer confirms a report. All pending reports on that project are closed
    as verified. no-show marks the project absent, other flags it, busy only verifies.
    """
    report = _find(reports, report_id, "Report")
    _find(projects, report.project_id, "Project")

    update = {}
    if report.kind == ReportKind.NO_SHOW:
        update = {"no_show": True}
    elif report.kind == ReportKind.OTHER:
        update = {"flagged": True}

    new_projects = [
        p.model_copy(update=update) if p.id == report.project_id and update else p
        for p in projects
    ]
    new_reports = [
        r.model_copy(update={"status": ReportStatus.VERIFIED})
        if r.project_id == report.project_id and r.status == ReportStatus.PENDING else r
        for r in reports
    ]
    logger.info("Verified %s report on project %s", report.kind.value, report.project_id)
    return new_reports, new_projects


def dismiss_report(report_id: str, reports: List[Report]) -> List[Report]:
    _find(reports, report_id, "Report")
    return [
        r.model_copy(update={"status": ReportStatus.DISMISSED}) if r.id == report_id else r
        for r in reports
    ]


# -----------------------
# Roster edits
# -----------------------
def set_no_show(project_id: str, projects: List[Project], no_show: bool = True) -> List[Project]:
    _find(projects, project_id, "Project")
    return [p.model_copy(update={"no_show": no_show}) if p.id == project_id else p for p in projects]


def remove_judge(
    judge_id: str,
    judges: List[Judge],
    scores: List[Score],
    assignments: List[Assignment],
    reports: List[Report],
) -> Tuple[List[Judge], List[Score], List[Assignment], List[Report]]:
    """Drop a judge together with everything that references them."""
    _find(judges, judge_id, "Judge")
    dropped = sum(1 for s in scores if s.judge_id == judge_id)
    if dropped:
        logger.warning("Removing judge %s drops %d submitted scores", judge_id, dropped)
    return (
        [j for j in judges if j.id != judge_id],
        [s for s in scores if s.judge_id != judge_id],
        [a for a in assignments if a.judge_id != judge_id],
        [r for r in reports if r.judge_id != judge_id],
    )


def remove_project(
    project_id: str,
    projects: List[Project],
    scores: List[Score],
    assignments: List[Assignment],
    reports: List[Report],
) -> Tuple[List[Project], List[Score], List[Assignment], List[Report]]:
    _find(projects, project_id, "Project")
    return (
        [p for p in projects if p.id != project_id],
        [s for s in scores if s.project_id != project_id],
        [a for a in assignments if a.project_id != project_id],
        [r for r in reports if r.project_id != project_id],
    )
