from __future__ import annotations

import logging
from io import StringIO
from typing import Dict, List, Optional

import pandas as pd

from hackjudge.models import (
    Assignment,
    Criterion,
    Judge,
    LeaderboardRow,
    Project,
    ProjectStatus,
    Score,
    duplicate_keys,
)

logger = logging.getLogger(__name__)

# placement within one judge's own set -> points
RANK_POINTS: Dict[int, int] = {1: 5, 2: 4, 3: 3, 4: 2, 5: 1}


# -----------------------
# Status
# -----------------------
def classify_status(project: Project, scores: List[Score], required_rounds: int) -> ProjectStatus:
    if project.no_show:
        return ProjectStatus.PURPLE
    times_judged = sum(1 for s in scores if s.project_id == project.id)
    if times_judged == 0:
        return ProjectStatus.RED
    if times_judged < required_rounds:
        return ProjectStatus.YELLOW
    return ProjectStatus.GREEN


def _in_category(projects: List[Project], category: Optional[str]) -> List[Project]:
    if not category:
        return list(projects)
    return [p for p in projects if category in p.categories]


def status_summary(
    projects: List[Project],
    scores: List[Score],
    required_rounds: int,
    category_filter: Optional[str] = None,
) -> dict:
    """Dashboard header numbers: project count, score count, and projects per status colour."""
    shown = _in_category(projects, category_filter)
    shown_ids = {p.id for p in shown}
    counts = {s.value: 0 for s in ProjectStatus}
    for p in shown:
        counts[classify_status(p, scores, required_rounds).value] += 1
    return {
        "projects": len(shown),
        "total_scores": sum(1 for s in scores if s.project_id in shown_ids),
        "status_counts": counts,
    }


# -----------------------
# Leaderboard
# -----------------------
def included_criteria(
    criteria: List[Criterion], organizer_categories: List[str], category_filter: Optional[str] = None
) -> Dict[str, float]:
    """
    criterion id -> weight for the criteria that count in this view.

    General criteria always count. A category-scoped criterion only counts in its
    own category's view, so the overall ranking is never skewed by them.
    """
    out: Dict[str, float] = {}
    for c in criteria:
        scoped = c.scoped_category(organizer_categories)
        if scoped is None or (category_filter and scoped == category_filter):
            out[c.id] = c.weight
    return out


def judge_raw_totals(
    projects: List[Project],
    scores: List[Score],
    criteria: List[Criterion],
    organizer_categories: List[str],
    category_filter: Optional[str] = None,
) -> pd.DataFrame:
    """One weighted raw total per (judge, project) for in-scope projects."""
    weights = included_criteria(criteria, organizer_categories, category_filter)
    in_scope = {p.id for p in _in_category(projects, category_filter) if not p.no_show}

    dups = duplicate_keys(scores)
    if dups:
        logger.warning("Duplicate score keys %s; keeping the last submission for each", dups)

    rows = {}
    for s in scores:
        if s.project_id not in in_scope:
            continue
        raw = sum(value * weights[cid] for cid, value in s.criteria.items() if cid in weights)
        rows[(s.judge_id, s.project_id)] = raw

    return pd.DataFrame(
        [(j, p, raw) for (j, p), raw in rows.items()],
        columns=["judge_id", "project_id", "raw"],
    )


def stack_rank(raw_totals: pd.DataFrame) -> pd.DataFrame:
    """
    Adds rank and points columns.

    Each judge's scores are ranked on their own (highest raw = 1). Ties share the
    rank of their first position (1, 2, 2, 4, ...), so tied projects get the same
    points and the next rank is skipped.
    """
    ranked = raw_totals.copy()
    if ranked.empty:
        ranked["rank"] = pd.Series(dtype=int)
        ranked["points"] = pd.Series(dtype=int)
        return ranked
    ranked["rank"] = ranked.groupby("judge_id")["raw"].rank(method="min", ascending=False).astype(int)
    ranked["points"] = ranked["rank"].map(RANK_POINTS).fillna(0).astype(int)
    return ranked


def build_leaderboard(
    projects: List[Project],
    scores: List[Score],
    criteria: List[Criterion],
    organizer_categories: Optional[List[str]] = None,
    category_filter: Optional[str] = None,
) -> List[LeaderboardRow]:
    """
    Stack-ranked leaderboard, overall (category_filter=None) or for one organizer category.

    Sorted by summed rank points across judges; the raw average only breaks ties.
    Every in-scope project is listed, unscored ones with zeros.
    """
    organizer_categories = organizer_categories or []
    relevant = [p for p in _in_category(projects, category_filter) if not p.no_show]

    ranked = stack_rank(judge_raw_totals(projects, scores, criteria, organizer_categories, category_filter))
    per_project = ranked.groupby("project_id").agg(
        rank_points=("points", "sum"),
        times_judged=("raw", "size"),
        raw_total=("raw", "sum"),
    )

    rows: List[LeaderboardRow] = []
    for p in relevant:
        if p.id in per_project.index:
            agg = per_project.loc[p.id]
            times_judged = int(agg["times_judged"])
            rank_points = int(agg["rank_points"])
            raw_avg = float(agg["raw_total"]) / times_judged
        else:
            times_judged, rank_points, raw_avg = 0, 0, 0.0
        rows.append(
            LeaderboardRow(
                project_id=p.id,
                project_name=p.name,
                table=p.table,
                times_judged=times_judged,
                rank_points=rank_points,
                raw_avg=raw_avg,
            )
        )

    rows.sort(key=lambda r: (-r.rank_points, -r.raw_avg))
    logger.debug("Leaderboard (%s): %d projects, %d judge rankings",
                 category_filter or "overall", len(rows), ranked["judge_id"].nunique())
    return rows


def leaderboard_frame(rows: List[LeaderboardRow]) -> pd.DataFrame:
    df = pd.DataFrame(
        {
            "Table": [r.table for r in rows],
            "Project Name": [r.project_name for r in rows],
            "Times Judged": [r.times_judged for r in rows],
            "Rank Points": [r.rank_points for r in rows],
            "Raw Avg": [round(r.raw_avg, 2) for r in rows],
        }
    )
    df.insert(0, "Rank", range(1, len(df) + 1))
    return df


def leaderboard_csv(rows: List[LeaderboardRow]) -> str:
    buf = StringIO()
    leaderboard_frame(rows).to_csv(buf, index=False, float_format="%.2f")
    return buf.getvalue()


# -----------------------
# Coverage matrix
# -----------------------
CELL_NO_SHOW = "no-show"
CELL_SCORED = "scored"
CELL_PENDING = "pending"
CELL_UNASSIGNED_SCORED = "unassigned-scored"
CELL_EMPTY = "empty"


def coverage_matrix(
    judges: List[Judge],
    projects: List[Project],
    scores: List[Score],
    assignments: List[Assignment],
    category_filter: Optional[str] = None,
) -> pd.DataFrame:
    """
    rows = project id (table order as given)
    cols = judge id
    values = cell state (no-show / scored / pending / unassigned-scored / empty)
    """
    shown = _in_category(projects, category_filter)
    assigned = {(a.judge_id, a.project_id) for a in assignments}
    scored = {(s.judge_id, s.project_id) for s in scores}

    data = {}
    for p in shown:
        row = {}
        for j in judges:
            key = (j.id, p.id)
            if p.no_show:
                cell = CELL_NO_SHOW
            elif key in assigned:
                cell = CELL_SCORED if key in scored else CELL_PENDING
            elif key in scored:
                cell = CELL_UNASSIGNED_SCORED
            else:
                cell = CELL_EMPTY
            row[j.id] = cell
        data[p.id] = row

    columns = [j.id for j in judges]
    if not data:
        return pd.DataFrame(columns=columns)
    return pd.DataFrame.from_dict(data, orient="index", columns=columns)
