"""
Project API endpoints.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from typing import List

from ..models.project import Project, ProjectCreate, ProjectUpdate, ProjectListItem, ProjectMerge
from ..services.session import SessionController, get_session_controller

router = APIRouter(prefix="/api/v1/projects", tags=["projects"])


def to_list_item(project: Project, controller: SessionController) -> ProjectListItem:
    active = controller.context is not None and controller.context.project_id == project.id
    return ProjectListItem(
        id=project.id,
        name=project.name,
        createdAt=project.createdAt,
        filesLoadedCount=project.filesLoadedCount,
        messageCount=len(project.savedMessages),
        isActive=active,
    )


@router.get("", response_model=List[ProjectListItem])
async def list_projects(controller: SessionController = Depends(get_session_controller)):
    """List all known projects, newest first."""
    return [to_list_item(p, controller) for p in controller.list_projects()]


@router.post("", response_model=ProjectListItem)
async def create_project(data: ProjectCreate, controller: SessionController = Depends(get_session_controller)):
    """Create a project and make it the active one."""
    project = await controller.new_project(data.name)
    return to_list_item(project, controller)


@router.post("/merge", response_model=ProjectListItem)
async def merge_projects(data: ProjectMerge, controller: SessionController = Depends(get_session_controller)):
    """Combine two or more projects into a new active project."""
    project = await controller.merge_projects(data.projectIds, data.name)
    return to_list_item(project, controller)


@router.post("/import", response_model=ProjectListItem)
async def import_project(request: Request, controller: SessionController = Depends(get_session_controller)):
    """Import a document produced by the export endpoint, sent as the raw body."""
    document = (await request.body()).decode("utf-8", errors="replace")
    project = await controller.import_project(document)
    return to_list_item(project, controller)


@router.post("/{project_id}/select", response_model=ProjectListItem)
async def select_project(project_id: str, controller: SessionController = Depends(get_session_controller)):
    context = await controller.select_project(project_id)
    return to_list_item(context.to_project(), controller)


@router.put("/{project_id}", response_model=ProjectListItem)
async def rename_project(project_id: str, data: ProjectUpdate,
                         controller: SessionController = Depends(get_session_controller)):
    project = await controller.rename_project(project_id, data.name.strip())
    return to_list_item(project, controller)


@router.delete("/{project_id}")
async def delete_project(project_id: str, controller: SessionController = Depends(get_session_controller)):
    """Delete a project and all its data."""
    await controller.delete_project(project_id)
    return {"deleted": True, "id": project_id}


@router.get("/{project_id}/export")
async def export_project(project_id: str, controller: SessionController = Depends(get_session_controller)):
    document = controller.export_project(project_id)
    return Response(
        content=document,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="project-{project_id}.json"'},
    )
