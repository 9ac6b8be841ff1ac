"""Host bridge routes.

Each route maps one inbound host operation onto the DeploymentMonitor held
in ``app.state.monitor``; outbound events are read from ``app.state.feed``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request

from railwatch.api.schemas import (
    AutoRefreshOut,
    CredentialRequest,
    DeploymentOut,
    FeedEventOut,
    HealthResponse,
    LogViewOut,
    NamedResourceOut,
    ProjectOut,
    ResourceRefRequest,
)
from railwatch.models.resources import Deployment, ResourceRef

router = APIRouter()


def _child_out(item: Any) -> dict[str, Any]:
    if isinstance(item, Deployment):
        return DeploymentOut.model_validate(item, from_attributes=True).model_dump(mode="json")
    return NamedResourceOut.model_validate(item, from_attributes=True).model_dump(mode="json")


def _to_ref(body: ResourceRefRequest) -> ResourceRef:
    return ResourceRef(kind=body.kind, id=body.id, project_id=body.project_id, environment_id=body.environment_id)


@router.get("/health", response_model=HealthResponse)
async def health(request: Request) -> HealthResponse:
    from railwatch import __version__

    monitor = request.app.state.monitor
    stats = monitor.stats()
    return HealthResponse(
        status="suspended" if stats["suspended"] else "ok",
        version=__version__,
        monitor=stats,
    )


@router.get("/projects", response_model=list[ProjectOut])
async def list_projects(request: Request) -> list[ProjectOut]:
    projects = await request.app.state.monitor.projects()
    return [ProjectOut.model_validate(project, from_attributes=True) for project in projects]


@router.get("/projects/{project_id}/environments", response_model=list[NamedResourceOut])
async def list_environments(project_id: str, request: Request) -> list[NamedResourceOut]:
    environments = await request.app.state.monitor.environments(project_id)
    return [NamedResourceOut.model_validate(env, from_attributes=True) for env in environments]


@router.get("/projects/{project_id}/services", response_model=list[NamedResourceOut])
async def list_services(project_id: str, request: Request) -> list[NamedResourceOut]:
    services = await request.app.state.monitor.services(project_id)
    return [NamedResourceOut.model_validate(svc, from_attributes=True) for svc in services]


@router.get(
    "/services/{service_id}/environments/{environment_id}/deployments",
    response_model=list[DeploymentOut],
)
async def list_deployments(service_id: str, environment_id: str, request: Request) -> list[DeploymentOut]:
    deployments = await request.app.state.monitor.deployments(service_id, environment_id)
    return [DeploymentOut.model_validate(dep, from_attributes=True) for dep in deployments]


@router.post("/refresh", status_code=204)
async def refresh(request: Request) -> None:
    request.app.state.monitor.refresh()


@router.post("/select")
async def select_resource(body: ResourceRefRequest, request: Request) -> list[dict[str, Any]]:
    try:
        children = await request.app.state.monitor.select_resource(_to_ref(body))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return [_child_out(child) for child in children]


@router.post("/logs", response_model=LogViewOut)
async def open_log_view(body: ResourceRefRequest, request: Request) -> LogViewOut:
    try:
        view = await request.app.state.monitor.open_log_view(_to_ref(body))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return LogViewOut(
        view_id=view.view_id,
        source=view.source,
        resource_id=view.target.id,
        auto_refresh=view.auto_refresh,
    )


@router.post("/logs/auto-refresh", response_model=AutoRefreshOut)
async def toggle_auto_refresh(request: Request) -> AutoRefreshOut:
    state = await request.app.state.monitor.toggle_auto_refresh()
    if state is None:
        raise HTTPException(status_code=409, detail="no log view is open")
    return AutoRefreshOut(auto_refresh=state)


@router.delete("/logs", status_code=204)
async def close_log_view(request: Request) -> None:
    await request.app.state.monitor.close_log_view()


@router.put("/credential", status_code=204)
async def set_credential(body: CredentialRequest, request: Request) -> None:
    try:
        request.app.state.monitor.set_credential(body.token)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.delete("/credential", status_code=204)
async def clear_credential(request: Request) -> None:
    request.app.state.monitor.clear_credential()


@router.get("/events", response_model=list[FeedEventOut])
async def list_events(request: Request, after: int = Query(default=0, ge=0)) -> list[FeedEventOut]:
    return [FeedEventOut.model_validate(event, from_attributes=True) for event in request.app.state.feed.after(after)]
