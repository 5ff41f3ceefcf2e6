"""Projects, tasks and time entries."""

import logging
from typing import Any, Dict, List, Optional

from invoicing.calculators import calculate_project_stats
from invoicing.models import (
    ActivityType,
    EntityType,
    Project,
    ProjectCreate,
    ProjectStats,
    ProjectStatus,
    ProjectUpdate,
    Task,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
    TimeEntry,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from invoicing.models.base import merge_update, utc_now
from invoicing.models.project import minutes_between
from invoicing.services.activity_logger import ActivityLogger
from invoicing.sheets import Workbook

logger = logging.getLogger(__name__)


class ProjectService:
    def __init__(self, workbook: Workbook, activity: ActivityLogger):
        self.workbook = workbook
        self.activity = activity

    # Projects

    def list_projects(
        self,
        client_id: Optional[str] = None,
        status: Optional[ProjectStatus] = None,
        search: Optional[str] = None,
    ) -> List[Project]:
        needle = search.strip().lower() if search else None

        def matches(project: Project) -> bool:
            if client_id and project.client_id != client_id:
                return False
            if status and project.status != status:
                return False
            if needle and needle not in f"{project.name} {project.description or ''}".lower():
                return False
            return True

        return sorted(self.workbook.projects.filter(matches), key=lambda p: p.start_date, reverse=True)

    def get_project(self, project_id: str) -> Project:
        return self.workbook.projects.require(project_id)

    def create_project(self, data: ProjectCreate) -> Project:
        self.workbook.clients.require(data.client_id)
        project = Project(**data.model_dump())
        self.workbook.projects.insert(project)
        self.activity.log(
            ActivityType.PROJECT_CREATED,
            EntityType.PROJECT,
            project.id,
            f"Project created: {project.name}",
            entity_name=project.name,
        )
        return project

    def update_project(self, project_id: str, data: ProjectUpdate) -> Project:
        existing = self.workbook.projects.require(project_id)
        if data.client_id:
            self.workbook.clients.require(data.client_id)
        updated = merge_update(existing, data, updated_at=utc_now())
        self.workbook.projects.update(updated)

        completed = (
            updated.status == ProjectStatus.COMPLETED
            and existing.status != ProjectStatus.COMPLETED
        )
        self.activity.log(
            ActivityType.PROJECT_COMPLETED if completed else ActivityType.PROJECT_UPDATED,
            EntityType.PROJECT,
            project_id,
            f"Project {'completed' if completed else 'updated'}: {updated.name}",
            entity_name=updated.name,
            previous_value=existing.status.value if existing.status != updated.status else None,
            new_value=updated.status.value if existing.status != updated.status else None,
        )
        return updated

    def delete_project(self, project_id: str) -> Dict[str, Any]:
        """Delete a project with its tasks and time entries."""
        project = self.workbook.projects.require(project_id)
        entries = self.workbook.time_entries.delete_where(lambda e: e.project_id == project_id)
        tasks = self.workbook.tasks.delete_where(lambda t: t.project_id == project_id)
        self.workbook.projects.delete(project_id)
        self.activity.log(
            ActivityType.PROJECT_DELETED,
            EntityType.PROJECT,
            project_id,
            f"Project deleted: {project.name}",
            entity_name=project.name,
        )
        return {"id": project_id, "tasks_deleted": tasks, "time_entries_deleted": entries}

    def project_stats(self, project_id: str) -> ProjectStats:
        project = self.workbook.projects.require(project_id)
        tasks = self.workbook.tasks.filter(lambda t: t.project_id == project_id)
        entries = self.workbook.time_entries.filter(lambda e: e.project_id == project_id)
        return calculate_project_stats(project, tasks, entries)

    # Tasks

    def list_tasks(
        self,
        project_id: Optional[str] = None,
        status: Optional[TaskStatus] = None,
        priority: Optional[TaskPriority] = None,
        assigned_to: Optional[str] = None,
    ) -> List[Task]:
        def matches(task: Task) -> bool:
            if project_id and task.project_id != project_id:
                return False
            if status and task.status != status:
                return False
            if priority and task.priority != priority:
                return False
            if assigned_to and task.assigned_to != assigned_to:
                return False
            return True

        return sorted(self.workbook.tasks.filter(matches), key=lambda t: t.created_at)

    def get_task(self, task_id: str) -> Task:
        return self.workbook.tasks.require(task_id)

    def create_task(self, data: TaskCreate) -> Task:
        self.workbook.projects.require(data.project_id)
        task = Task(**data.model_dump())
        self.workbook.tasks.insert(task)
        self.activity.log(
            ActivityType.TASK_CREATED,
            EntityType.TASK,
            task.id,
            f"Task created: {task.title}",
            entity_name=task.title,
        )
        return task

    def update_task(self, task_id: str, data: TaskUpdate) -> Task:
        existing = self.workbook.tasks.require(task_id)
        updated = merge_update(existing, data, updated_at=utc_now())
        self.workbook.tasks.update(updated)
        completed = (
            updated.status == TaskStatus.COMPLETED and existing.status != TaskStatus.COMPLETED
        )
        self.activity.log(
            ActivityType.TASK_COMPLETED if completed else ActivityType.TASK_UPDATED,
            EntityType.TASK,
            task_id,
            f"Task {'completed' if completed else 'updated'}: {updated.title}",
            entity_name=updated.title,
            previous_value=existing.status.value if existing.status != updated.status else None,
            new_value=updated.status.value if existing.status != updated.status else None,
        )
        return updated

    def delete_task(self, task_id: str) -> Dict[str, Any]:
        task = self.workbook.tasks.require(task_id)
        entries = self.workbook.time_entries.delete_where(lambda e: e.task_id == task_id)
        self.workbook.tasks.delete(task_id)
        self.activity.log(
            ActivityType.TASK_DELETED,
            EntityType.TASK,
            task_id,
            f"Task deleted: {task.title}",
            entity_name=task.title,
        )
        return {"id": task_id, "time_entries_deleted": entries}

    # Time entries

    def list_time_entries(
        self,
        project_id: Optional[str] = None,
        task_id: Optional[str] = None,
        billable: Optional[bool] = None,
    ) -> List[TimeEntry]:
        def matches(entry: TimeEntry) -> bool:
            if project_id and entry.project_id != project_id:
                return False
            if task_id and entry.task_id != task_id:
                return False
            if billable is not None and entry.is_billable != billable:
                return False
            return True

        return sorted(
            self.workbook.time_entries.filter(matches),
            key=lambda e: e.start_time,
            reverse=True,
        )

    def get_time_entry(self, entry_id: str) -> TimeEntry:
        return self.workbook.time_entries.require(entry_id)

    def create_time_entry(self, data: TimeEntryCreate) -> TimeEntry:
        task = self.workbook.tasks.require(data.task_id)
        entry = TimeEntry(**{**data.model_dump(), "project_id": task.project_id})
        self.workbook.time_entries.insert(entry)
        self.activity.log(
            ActivityType.TIME_ENTRY_CREATED,
            EntityType.TIME_ENTRY,
            entry.id,
            f"Logged {entry.duration or 0} minutes on task: {task.title}",
            entity_name=task.title,
        )
        return entry

    def update_time_entry(self, entry_id: str, data: TimeEntryUpdate) -> TimeEntry:
        """Update an entry; changing start or end without a duration recomputes it."""
        existing = self.workbook.time_entries.require(entry_id)
        overrides: Dict[str, Any] = {}
        changes = data.model_dump(exclude_unset=True)
        if ("start_time" in changes or "end_time" in changes) and "duration" not in changes:
            start = changes.get("start_time", existing.start_time)
            end = changes.get("end_time", existing.end_time)
            overrides["duration"] = minutes_between(start, end) if end else None
        updated = merge_update(existing, data, **overrides)
        self.workbook.time_entries.update(updated)
        self.activity.log(
            ActivityType.TIME_ENTRY_UPDATED,
            EntityType.TIME_ENTRY,
            entry_id,
            f"Time entry updated ({updated.duration or 0} minutes)",
        )
        return updated

    def delete_time_entry(self, entry_id: str) -> Dict[str, Any]:
        self.workbook.time_entries.require(entry_id)
        self.workbook.time_entries.delete(entry_id)
        self.activity.log(
            ActivityType.TIME_ENTRY_DELETED,
            EntityType.TIME_ENTRY,
            entry_id,
            "Time entry deleted",
        )
        return {"id": entry_id}
