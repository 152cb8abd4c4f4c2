from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from hackjudge.models import EventConfig, Judge, Organizer, OrganizerRole


@pytest.fixture
def feasible_config() -> EventConfig:
    """A plan where every rule holds with room to spare."""
    t0 = datetime(2026, 3, 14, 9, 0)

    def at(minutes: int) -> datetime:
        return t0 + timedelta(minutes=minutes)

    return EventConfig(
        event_name="SpringHacks",
        estimated_check_ins=100,  # 20 projects
        soft_deadline=at(0),
        hard_deadline=at(60),
        judge_arrival=at(30),
        judge_orientation=at(60),
        judging_start=at(120),
        judging_end=at(240),
        closing_ceremony=at(300),
        venue_hard_cutoff=at(360),
        table_count=30,
        judges_per_project=3,
        judges=[Judge(id=f"j{i}", name=f"Judge {i}") for i in range(15)],
        organizers=[
            Organizer(name=f"Org {i}", phone=f"555-010{i}", role=role)
            for i, role in enumerate(OrganizerRole)
        ],
    )
