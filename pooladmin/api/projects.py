from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session, selectinload

from ..api.dependencies import apply_changes, get_db, get_or_404, model_snapshot
from ..auth.jwt import require_permission
from ..models.models import Project, ProjectTask, User
from ..schemas.schemas import (
    BudgetUsageRead,
    ProjectCreate,
    ProjectRead,
    ProjectTaskCreate,
    ProjectTaskRead,
    ProjectTaskUpdate,
    ProjectUpdate,
)
from ..services.audit import audit_log
from ..services.projects import budget_usage, order_projects

router = APIRouter(prefix="/projects", tags=["projects"])


def _as_read(project: Project) -> ProjectRead:
    read = ProjectRead.model_validate(project)
    read.budget_usage = BudgetUsageRead.model_validate(budget_usage(project))
    return read


def _get_task(db: Session, project_id: int, task_id: int) -> ProjectTask:
    task = db.get(ProjectTask, task_id)
    if not task or task.project_id != project_id:
        raise HTTPException(status_code=404, detail="Task not found")
    return task


@router.get("/", response_model=List[ProjectRead])
def list_projects(
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("projects:read")),
) -> List[ProjectRead]:
    projects = db.query(Project).options(selectinload(Project.tasks)).all()
    return [_as_read(project) for project in order_projects(projects)]


@router.get("/{project_id}", response_model=ProjectRead)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("projects:read")),
) -> ProjectRead:
    return _as_read(get_or_404(db, Project, project_id, "Project"))


@router.post("/", response_model=ProjectRead, status_code=201)
def create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:write")),
) -> ProjectRead:
    project = Project(**payload.model_dump())
    db.add(project)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="project.create",
        entity="Project",
        entity_id=project.id,
        details=f"Created project {project.name}",
        after=model_snapshot(project),
    )
    db.refresh(project)
    return _as_read(project)


@router.patch("/{project_id}", response_model=ProjectRead)
def update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:write")),
) -> ProjectRead:
    project = get_or_404(db, Project, project_id, "Project")
    before = model_snapshot(project)
    apply_changes(project, payload.model_dump(exclude_unset=True))
    db.add(project)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="project.update",
        entity="Project",
        entity_id=project.id,
        before=before,
        after=model_snapshot(project),
    )
    db.refresh(project)
    return _as_read(project)


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:delete")),
) -> None:
    project = get_or_404(db, Project, project_id, "Project")
    before = model_snapshot(project)
    db.delete(project)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="project.delete",
        entity="Project",
        entity_id=project_id,
        before=before,
    )


@router.post("/{project_id}/tasks", response_model=ProjectTaskRead, status_code=201)
def create_task(
    project_id: int,
    payload: ProjectTaskCreate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:write")),
) -> ProjectTask:
    project = get_or_404(db, Project, project_id, "Project")
    task = ProjectTask(project_id=project.id, **payload.model_dump())
    db.add(task)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="project.task.create",
        entity="ProjectTask",
        entity_id=task.id,
        details=f"Added task {task.name} to {project.name}",
        after=model_snapshot(task),
    )
    db.refresh(task)
    return task


@router.patch("/{project_id}/tasks/{task_id}", response_model=ProjectTaskRead)
def update_task(
    project_id: int,
    task_id: int,
    payload: ProjectTaskUpdate,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:write")),
) -> ProjectTask:
    task = _get_task(db, project_id, task_id)
    before = model_snapshot(task)
    apply_changes(task, payload.model_dump(exclude_unset=True))
    db.add(task)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="project.task.update",
        entity="ProjectTask",
        entity_id=task.id,
        before=before,
        after=model_snapshot(task),
    )
    db.refresh(task)
    return task


@router.delete("/{project_id}/tasks/{task_id}", status_code=204)
def delete_task(
    project_id: int,
    task_id: int,
    db: Session = Depends(get_db),
    actor: User = Depends(require_permission("projects:delete")),
) -> None:
    task = _get_task(db, project_id, task_id)
    before = model_snapshot(task)
    db.delete(task)
    db.flush()
    audit_log(
        db_session=db,
        actor=actor,
        action="project.task.delete",
        entity="ProjectTask",
        entity_id=task_id,
        before=before,
    )
