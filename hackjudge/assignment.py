from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

import numpy as np

from hackjudge.config import Config
from hackjudge.models import Assignment, AssignmentStatus, Judge, Project, Score

logger = logging.getLogger(__name__)

LOAD_PENALTY = 50
NEARBY_TABLES = 10
NEARBY_BONUS = 100
FRESH_JUDGE_BONUS = 50
JITTER = 20.0


def default_rng(seed: Optional[int] = None) -> np.random.Generator:
    return np.random.default_rng(Config.ASSIGNMENT_SEED if seed is None else seed)


def table_sort_key(project: Project) -> Tuple[int, int, str]:
    """Numbered tables first in numeric order, then anything else by label."""
    num = project.table_number
    if num is None:
        return (1, 0, project.table)
    return (0, num, project.table)


# -----------------------
# Planning
# -----------------------
@dataclass
class _Walk:
    """Per-judge running state for one planning pass."""
    load: Dict[str, int] = field(default_factory=dict)
    last_table: Dict[str, Optional[int]] = field(default_factory=dict)

    def visit(self, judge_id: str, table: Optional[int]) -> None:
        self.load[judge_id] = self.load.get(judge_id, 0) + 1
        self.last_table[judge_id] = table


def _proximity(walk: _Walk, judge_id: str, table: Optional[int]) -> float:
    last = walk.last_table.get(judge_id)
    if table is not None and last is not None:
        distance = abs(table - last)
        if distance <= NEARBY_TABLES:
            return NEARBY_BONUS
    else:
        distance = 0
    if walk.load.get(judge_id, 0) == 0:
        return FRESH_JUDGE_BONUS
    # far jumps cost their distance but are never forbidden
    return -distance


def plan_assignments(
    judges: List[Judge],
    projects: List[Project],
    rounds_per_project: int,
    rng: Optional[np.random.Generator] = None,
) -> List[Assignment]:
    """
    Greedy judge -> project plan.

    Projects are visited in table order. For each of the required rounds the
    unused judge with the best score is picked:

        -50 * load + proximity + uniform[0, 20)

    proximity is +100 within 10 tables of the judge's previous table, +50 for a
    judge with nothing assigned yet, otherwise minus the distance. A judge is
    never put on the same project twice; a project that runs out of unused
    judges gets fewer rounds.

    The plan is rebuilt from scratch on every call. No-show projects are skipped.
    """
    active = sorted((p for p in projects if not p.no_show), key=table_sort_key)
    if not judges or not active or rounds_per_project <= 0:
        logger.warning(
            "Nothing to assign (%d judges, %d active projects, %d rounds)",
            len(judges), len(active), rounds_per_project,
        )
        return []

    rng = rng if rng is not None else default_rng()
    walk = _Walk()
    plan: List[Assignment] = []

    for project in active:
        table = project.table_number
        on_project = set()
        for round_no in range(rounds_per_project):
            candidates = [j for j in judges if j.id not in on_project]
            if not candidates:
                logger.warning(
                    "Project %s (table %s) has only %d judges available for %d rounds",
                    project.id, project.table, len(on_project), rounds_per_project,
                )
                break

            jitter = rng.uniform(0.0, JITTER, size=len(candidates))
            scores = np.array([
                -LOAD_PENALTY * walk.load.get(j.id, 0) + _proximity(walk, j.id, table)
                for j in candidates
            ]) + jitter
            best = candidates[int(np.argmax(scores))]

            plan.append(Assignment(judge_id=best.id, project_id=project.id))
            on_project.add(best.id)
            walk.visit(best.id, table)

    logger.info(
        "Planned %d assignments over %d projects and %d judges (max load %d)",
        len(plan), len(active), len(judges), max(walk.load.values(), default=0),
    )
    return plan


# -----------------------
# Judge-side helpers
# -----------------------
def judge_worklist(judge_id: str, projects: List[Project], assignments: List[Assignment]) -> List[Project]:
    """Projects a judge should visit, in table order. Without any plan every active project is open."""
    active = [p for p in projects if not p.no_show]
    if assignments:
        assigned = {a.project_id for a in assignments if a.judge_id == judge_id}
        active = [p for p in active if p.id in assigned]
    return sorted(active, key=table_sort_key)


def suggest_next_project(
    judge_id: str,
    projects: List[Project],
    assignments: List[Assignment],
    scores: List[Score],
    rng: Optional[np.random.Generator] = None,
) -> Optional[Project]:
    # random rather than lowest table so judges don't all pile onto table 1
    scored = {s.project_id for s in scores if s.judge_id == judge_id}
    pending = [p for p in judge_worklist(judge_id, projects, assignments) if p.id not in scored]
    if not pending:
        return None
    rng = rng if rng is not None else default_rng()
    return pending[int(rng.integers(len(pending)))]


def sync_assignment_status(assignments: List[Assignment], scores: List[Score]) -> List[Assignment]:
    scored = {(s.judge_id, s.project_id) for s in scores}
    return [
        a.model_copy(update={
            "status": AssignmentStatus.COMPLETED if (a.judge_id, a.project_id) in scored
            else AssignmentStatus.PENDING
        })
        for a in assignments
    ]
