from __future__ import annotations

import logging
from typing import List

from hackjudge.models import Criterion, Project, Score, upsert_score

logger = logging.getLogger(__name__)


class IncompleteScoreError(ValueError):
    def __init__(self, missing: List[Criterion]):
        self.missing = missing
        labels = []
        for c in missing:
            r = c.scale_range
            labels.append(f"{c.name} ({r[0]}-{r[-1]})")
        super().__init__(f"Missing scores for: {', '.join(labels)}.")


def relevant_criteria(
    project: Project, criteria: List[Criterion], organizer_categories: List[str]
) -> List[Criterion]:
    """General criteria, plus each category criterion whose category the project is tagged with."""
    out = []
    for c in criteria:
        scoped = c.scoped_category(organizer_categories)
        if scoped is None or scoped in project.categories:
            out.append(c)
    return out


def submit_score(
    scores: List[Score],
    score: Score,
    project: Project,
    criteria: List[Criterion],
    organizer_categories: List[str],
) -> List[Score]:
    """
    A judge's scoresheet for one project.

    Every criterion that applies to the project needs a value, otherwise
    IncompleteScoreError is raised. Values are not checked against the scale.
    A resubmission replaces the judge's earlier sheet for the project.
    """
    missing = [c for c in relevant_criteria(project, criteria, organizer_categories) if c.id not in score.criteria]
    if missing:
        raise IncompleteScoreError(missing)

    updated = upsert_score(scores, score.model_copy(update={"project_id": project.id}))
    logger.info("Judge %s scored project %s (table %s)", score.judge_id, project.id, project.table)
    return updated
