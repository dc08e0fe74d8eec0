from fastapi import APIRouter, Request

router = APIRouter(prefix="/api/projects", tags=["projects"])


@router.get("")
def list_projects(request: Request):
    return request.app.state.orchestrator.resolver.list_project_names()


@router.get("/{project_name}")
def project_details(project_name: str, request: Request):
    """Resolved project config used to prefill the forms. Unknown projects map to 404."""
    project = request.app.state.orchestrator.resolver.resolve_project_config(project_name)
    return project.model_dump()
