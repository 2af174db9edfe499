"""Milestone domain entities and workflow helpers."""

import math
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import StrEnum
from uuid import UUID, uuid4

from domain.entities.user import User


class MilestoneStatus(StrEnum):
    """Workflow states.

    BACKLOG -> TODO -> IN_PROGRESS -> DONE form the board columns and can be
    stepped through with ``next``/``previous``. CANCELLED sits outside that
    line and is only reached or left by setting a status explicitly.
    """

    BACKLOG = "backlog"
    TODO = "todo"
    IN_PROGRESS = "in_progress"
    DONE = "done"
    CANCELLED = "cancelled"

    def next(self) -> "MilestoneStatus | None":
        return _step(self, 1)

    def previous(self) -> "MilestoneStatus | None":
        return _step(self, -1)


_LINEAR_ORDER = (
    MilestoneStatus.BACKLOG,
    MilestoneStatus.TODO,
    MilestoneStatus.IN_PROGRESS,
    MilestoneStatus.DONE,
)


def _step(status: MilestoneStatus, offset: int) -> MilestoneStatus | None:
    if status not in _LINEAR_ORDER:
        return None
    index = _LINEAR_ORDER.index(status) + offset
    if 0 <= index < len(_LINEAR_ORDER):
        return _LINEAR_ORDER[index]
    return None


class DueStatus(StrEnum):
    NOT_DUE = "not_due"
    DUE_SOON = "due_soon"
    DUE = "due"
    OVERDUE = "overdue"


DUE_SOON_DAYS = 10


def _as_naive_utc(value: date | datetime) -> datetime:
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day)
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def due_status(due_at: date | datetime | None, now: date | datetime | None = None) -> DueStatus:
    """Classify a due date relative to ``now``.

    The difference is counted in whole days, truncated toward zero:
    0 is DUE, 1..10 is DUE_SOON, anything later (or no date) is NOT_DUE and
    a negative difference is OVERDUE.
    """
    if due_at is None:
        return DueStatus.NOT_DUE

    current = _as_naive_utc(now if now is not None else datetime.utcnow())
    delta = _as_naive_utc(due_at) - current
    days = math.trunc(delta.total_seconds() / 86400)

    if days < 0:
        return DueStatus.OVERDUE
    if days == 0:
        return DueStatus.DUE
    if days <= DUE_SOON_DAYS:
        return DueStatus.DUE_SOON
    return DueStatus.NOT_DUE


@dataclass
class Milestone:
    """Domain entity for a Milestone."""

    name: str
    project_id: UUID
    id: UUID = field(default_factory=uuid4)
    slug: str = ""
    description: str | None = None
    status: MilestoneStatus = MilestoneStatus.BACKLOG
    due_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)
    assignees: list[User] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure updated_at is always at least as recent as created_at."""
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    @property
    def assignee_ids(self) -> list[UUID]:
        return [user.id for user in self.assignees]

    def due_status(self, now: date | datetime | None = None) -> DueStatus:
        return due_status(self.due_at, now)


@dataclass
class MilestoneAssignee:
    """Domain entity for a milestone assignment."""

    milestone_id: UUID
    user_id: UUID
    assigned_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class MilestoneProgress:
    """Per-status counts for a project, CANCELLED excluded."""

    counts: dict[MilestoneStatus, int]
    total: int
    done_percentage: float

    @classmethod
    def from_counts(cls, counts: dict[MilestoneStatus, int]) -> "MilestoneProgress":
        tracked = {status: counts.get(status, 0) for status in _LINEAR_ORDER}
        total = sum(tracked.values())
        done = tracked[MilestoneStatus.DONE]
        percentage = round(done / total * 100, 2) if total else 0.0
        return cls(counts=tracked, total=total, done_percentage=percentage)
