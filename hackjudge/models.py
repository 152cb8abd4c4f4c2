from __future__ import annotations

import re
import uuid
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from hackjudge.config import Config
from hackjudge.timeline import parse_instant


def generate_id() -> str:
    return str(uuid.uuid4())


# -----------------------
# Enums
# -----------------------
class OrganizerRole(str, Enum):
    DEVPOST = "Devpost Help"
    CLEARING = "Clearing Tables"
    TABLE_ASSIGNMENT = "Assigning Table Numbers / No Shows"
    ORIENTATION = "Judging Orientation / Help Desk"
    SLIDES = "Closing Slides Creator"


class ProjectStatus(str, Enum):
    PURPLE = "purple"  # no-show
    RED = "red"  # not seen
    YELLOW = "yellow"  # in progress
    GREEN = "green"  # done


class AssignmentStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class ReportKind(str, Enum):
    NO_SHOW = "no-show"
    BUSY = "busy"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    DISMISSED = "dismissed"


# -----------------------
# Records
# -----------------------
class Judge(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str
    phone: str = ""
    email: Optional[str] = None


class Organizer(BaseModel):
    name: str
    phone: str
    email: str = ""
    role: OrganizerRole


_TABLE_NUMBER = re.compile(r"\s*(\d+)")


class Project(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str
    table: str = ""
    categories: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    members: List[str] = Field(default_factory=list)
    no_show: bool = False
    flagged: bool = False  # verified "other" report; display only

    @property
    def table_number(self) -> Optional[int]:
        """Leading integer of the table label ("12", "12B"), None for labels like "Lobby"."""
        m = _TABLE_NUMBER.match(self.table or "")
        return int(m.group(1)) if m else None


_SCALE = re.compile(r"^\s*(-?\d+)\s*-\s*(-?\d+)\s*$")


class Criterion(BaseModel):
    id: str = Field(default_factory=generate_id)
    name: str
    description: str = ""
    scale: str = "1-3"
    weight: float = 1.0
    # Explicit link to an organizer category. When unset, a criterion named
    # after an organizer category is treated as scoped to it.
    category: Optional[str] = None

    @field_validator("weight", mode="before")
    @classmethod
    def _default_weight(cls, v):
        return 1.0 if v is None else v

    @field_validator("weight")
    @classmethod
    def _positive_weight(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Criterion weight must be positive.")
        return v

    @property
    def scale_range(self) -> range:
        """The scale label as an inclusive integer range; unparseable labels fall back to 1-3."""
        m = _SCALE.match(self.scale or "")
        if not m:
            return range(1, 4)
        low, high = sorted((int(m.group(1)), int(m.group(2))))
        return range(low, high + 1)

    def scoped_category(self, organizer_categories: List[str]) -> Optional[str]:
        """The organizer category this criterion belongs to, or None for a general criterion."""
        if self.category and self.category in organizer_categories:
            return self.category
        if self.name in organizer_categories:
            return self.name
        return None


class Score(BaseModel):
    id: str = Field(default_factory=generate_id)
    judge_id: str
    project_id: str
    criteria: Dict[str, int] = Field(default_factory=dict)  # criterion id -> value
    note: str = ""
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class Assignment(BaseModel):
    id: str = Field(default_factory=generate_id)
    judge_id: str
    project_id: str
    status: AssignmentStatus = AssignmentStatus.PENDING


class Report(BaseModel):
    id: str = Field(default_factory=generate_id)
    judge_id: str
    project_id: str
    kind: ReportKind
    status: ReportStatus = ReportStatus.PENDING
    timestamp: datetime = Field(default_factory=datetime.utcnow)


DEFAULT_CRITERIA: List[Criterion] = [
    Criterion(id="1", name="Completion", description="Does the hack work? Did the team achieve everything they wanted?"),
    Criterion(id="2", name="Originality", description="Has this project been done before? How creative is it?"),
    Criterion(id="3", name="Learning", description="Did the team stretch themselves? Did they try to learn something new?"),
    Criterion(id="4", name="Design", description="Did the team put thought into the user experience? UI design?"),
    Criterion(id="5", name="Technology", description="How technically impressive was the hack? Complexity?"),
    Criterion(id="6", name="Organizer Category Relevance", description="Relevance to the specific category opted into."),
]


class EventConfig(BaseModel):
    event_name: str = ""
    estimated_check_ins: int = 0

    soft_deadline: Optional[datetime] = None
    hard_deadline: Optional[datetime] = None
    judge_arrival: Optional[datetime] = None
    judge_orientation: Optional[datetime] = None
    judging_start: Optional[datetime] = None
    judging_end: Optional[datetime] = None
    judging_deliberations: Optional[datetime] = None
    closing_ceremony: Optional[datetime] = None
    venue_hard_cutoff: Optional[datetime] = None

    table_count: int = 0
    judges_per_project: int = Field(default_factory=lambda: Config.DEFAULT_JUDGES_PER_PROJECT)

    judges: List[Judge] = Field(default_factory=list)
    organizers: List[Organizer] = Field(default_factory=list)

    sponsor_categories: List[str] = Field(default_factory=list)
    organizer_categories: List[str] = Field(default_factory=list)
    criteria: List[Criterion] = Field(default_factory=lambda: [c.model_copy() for c in DEFAULT_CRITERIA])

    @field_validator(
        "soft_deadline",
        "hard_deadline",
        "judge_arrival",
        "judge_orientation",
        "judging_start",
        "judging_end",
        "judging_deliberations",
        "closing_ceremony",
        "venue_hard_cutoff",
        mode="before",
    )
    @classmethod
    def _blank_is_unset(cls, v):
        return parse_instant(v)

    @field_validator("estimated_check_ins", mode="before")
    @classmethod
    def _missing_check_ins(cls, v):
        return 0 if v is None else v


# -----------------------
# Computed results
# -----------------------
class StressTestMetrics(BaseModel):
    effective_judges: int
    projected_projects: int
    time_per_project: float
    total_judging_time: float
    rounds: int


class StressTestResult(BaseModel):
    passed: bool
    errors: List[str]
    metrics: StressTestMetrics


class LeaderboardRow(BaseModel):
    project_id: str
    project_name: str
    table: str
    times_judged: int
    rank_points: int
    raw_avg: float


# -----------------------
# Keyed upserts
# -----------------------
def upsert_score(scores: List[Score], score: Score) -> List[Score]:
    """Replace the score with the same (judge, project) key, or append it. Keeps the original id."""
    out: List[Score] = []
    replaced = False
    for s in scores:
        if s.judge_id == score.judge_id and s.project_id == score.project_id:
            out.append(score.model_copy(update={"id": s.id}))
            replaced = True
        else:
            out.append(s)
    if not replaced:
        out.append(score)
    return out


def upsert_assignment(assignments: List[Assignment], assignment: Assignment) -> List[Assignment]:
    out = [
        a for a in assignments
        if not (a.judge_id == assignment.judge_id and a.project_id == assignment.project_id)
    ]
    out.append(assignment)
    return out


def duplicate_keys(records) -> List[tuple]:
    """(judge_id, project_id) keys that appear more than once in a score/assignment collection."""
    seen = set()
    dups = []
    for r in records:
        key = (r.judge_id, r.project_id)
        if key in seen and key not in dups:
            dups.append(key)
        seen.add(key)
    return dups
