"""Project, task and time entry models.

Projects belong to clients, tasks belong to projects, and time entries
record work on a task. Billable time entries feed project statistics.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from invoicing.models.base import (
    BaseDataModel,
    Money,
    new_id,
    require_text,
    strip_or_none,
    utc_now,
)


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ProjectCreate(BaseDataModel):
    """Request body for creating a project.

    Example:
        >>> ProjectCreate(name="Website Redesign", client_id="c-1",
        ...               start_date=date(2024, 1, 1)).status
        <ProjectStatus.PLANNING: 'planning'>
    """

    name: str = Field(..., min_length=1, max_length=100, description="Project name")
    description: Optional[str] = Field(default=None, max_length=1000)
    client_id: str = Field(..., min_length=1)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: date
    end_date: Optional[date] = None
    budget: Optional[Money] = Field(default=None, ge=0)
    hourly_rate: Optional[Money] = Field(default=None, ge=0)
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        return require_text(v, info.field_name)

    @field_validator("description")
    @classmethod
    def blank_is_none(cls, v: Optional[str]) -> Optional[str]:
        return strip_or_none(v)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("End date must be on or after start date")
        return self


class ProjectUpdate(BaseDataModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    client_id: Optional[str] = Field(default=None, min_length=1)
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Money] = Field(default=None, ge=0)
    hourly_rate: Optional[Money] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class Project(ProjectCreate):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class TaskCreate(BaseDataModel):
    project_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    assigned_to: Optional[str] = Field(default=None, max_length=100)
    due_date: Optional[date] = None
    estimated_hours: Optional[Money] = Field(default=None, ge=0)
    tags: List[str] = Field(default_factory=list)

    @field_validator("title")
    @classmethod
    def validate_not_empty(cls, v: str, info) -> str:
        return require_text(v, info.field_name)

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, v: List[str]) -> List[str]:
        return [tag.strip() for tag in v if tag and tag.strip()]


class TaskUpdate(BaseDataModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=2000)
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[str] = Field(default=None, max_length=100)
    due_date: Optional[date] = None
    estimated_hours: Optional[Money] = Field(default=None, ge=0)
    tags: Optional[List[str]] = None


class Task(TaskCreate):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, rounded to nearest."""
    return int(round((end - start).total_seconds() / 60))


class TimeEntryCreate(BaseDataModel):
    """Request body for logging time on a task.

    ``duration`` (minutes) is computed from start and end time when omitted.
    """

    task_id: str = Field(..., min_length=1)
    project_id: str = Field(..., min_length=1)
    description: Optional[str] = Field(default=None, max_length=1000)
    start_time: datetime
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0, description="Minutes")
    is_billable: bool = True
    hourly_rate: Optional[Money] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def fill_duration(self):
        if self.end_time is not None:
            if self.end_time < self.start_time:
                raise ValueError("End time must be after start time")
            if self.duration is None:
                self.duration = minutes_between(self.start_time, self.end_time)
        return self


class TimeEntryUpdate(BaseDataModel):
    description: Optional[str] = Field(default=None, max_length=1000)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, ge=0)
    is_billable: Optional[bool] = None
    hourly_rate: Optional[Money] = Field(default=None, ge=0)


class TimeEntry(TimeEntryCreate):
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def hours(self) -> Decimal:
        return Decimal(self.duration or 0) / Decimal(60)


class ProjectStats(BaseDataModel):
    """Aggregates shown on a project's detail page."""

    project_id: str
    total_hours: Money = Decimal("0")
    billable_hours: Money = Decimal("0")
    billable_amount: Money = Decimal("0")
    task_count: int = 0
    completed_tasks: int = 0
    task_counts: dict = Field(default_factory=dict)
    budget_used_percent: Optional[Money] = None
