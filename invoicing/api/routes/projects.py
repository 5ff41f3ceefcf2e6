"""Project, task and time entry routes."""

from typing import Optional

from fastapi import APIRouter, Depends

from invoicing.api.dependencies import get_project_service
from invoicing.api.responses import success
from invoicing.models import (
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    TaskCreate,
    TaskPriority,
    TaskStatus,
    TaskUpdate,
    TimeEntryCreate,
    TimeEntryUpdate,
)
from invoicing.services.project_service import ProjectService

router = APIRouter(tags=["Projects"])


@router.get("/projects")
def list_projects(
    client_id: Optional[str] = None,
    status: Optional[ProjectStatus] = None,
    search: Optional[str] = None,
    service: ProjectService = Depends(get_project_service),
):
    return success(service.list_projects(client_id, status, search))


@router.post("/projects", status_code=201)
def create_project(data: ProjectCreate, service: ProjectService = Depends(get_project_service)):
    return success(service.create_project(data))


@router.get("/projects/{project_id}")
def get_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.get_project(project_id))


@router.get("/projects/{project_id}/stats")
def project_stats(project_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.project_stats(project_id))


@router.put("/projects/{project_id}")
def update_project(
    project_id: str, data: ProjectUpdate, service: ProjectService = Depends(get_project_service)
):
    return success(service.update_project(project_id, data))


@router.delete("/projects/{project_id}")
def delete_project(project_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.delete_project(project_id))


@router.get("/tasks")
def list_tasks(
    project_id: Optional[str] = None,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    assigned_to: Optional[str] = None,
    service: ProjectService = Depends(get_project_service),
):
    return success(service.list_tasks(project_id, status, priority, assigned_to))


@router.post("/tasks", status_code=201)
def create_task(data: TaskCreate, service: ProjectService = Depends(get_project_service)):
    return success(service.create_task(data))


@router.get("/tasks/{task_id}")
def get_task(task_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.get_task(task_id))


@router.put("/tasks/{task_id}")
def update_task(task_id: str, data: TaskUpdate, service: ProjectService = Depends(get_project_service)):
    return success(service.update_task(task_id, data))


@router.delete("/tasks/{task_id}")
def delete_task(task_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.delete_task(task_id))


@router.get("/time-entries")
def list_time_entries(
    project_id: Optional[str] = None,
    task_id: Optional[str] = None,
    billable: Optional[bool] = None,
    service: ProjectService = Depends(get_project_service),
):
    return success(service.list_time_entries(project_id, task_id, billable))


@router.post("/time-entries", status_code=201)
def create_time_entry(data: TimeEntryCreate, service: ProjectService = Depends(get_project_service)):
    return success(service.create_time_entry(data))


@router.get("/time-entries/{entry_id}")
def get_time_entry(entry_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.get_time_entry(entry_id))


@router.put("/time-entries/{entry_id}")
def update_time_entry(
    entry_id: str, data: TimeEntryUpdate, service: ProjectService = Depends(get_project_service)
):
    return success(service.update_time_entry(entry_id, data))


@router.delete("/time-entries/{entry_id}")
def delete_time_entry(entry_id: str, service: ProjectService = Depends(get_project_service)):
    return success(service.delete_time_entry(entry_id))
