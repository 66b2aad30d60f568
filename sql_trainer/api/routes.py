"""HTTP routes; thin adapters from requests to TrainerService calls."""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse

from sql_trainer.api.schemas import (
    CheckSolutionRequest,
    CheckSolutionResponse,
    ErrorResponse,
    HealthCheckResponse,
    TaskSchemaResponse,
)
from sql_trainer.domain.models import TableKind, TaskView
from sql_trainer.service import TrainerService

router = APIRouter(prefix="/api")


def get_service(request: Request) -> TrainerService:
    return request.app.state.service


@router.get(
    "/generate-task",
    response_model=TaskView,
    tags=["tasks"],
    summary="Generate a new task",
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def generate_task(
    kind: Optional[str] = Query(
        None, description="Restrict to one table archetype.", examples=[k.value for k in TableKind]
    ),
    template: Optional[str] = Query(None, description="Force a specific task template."),
    service: TrainerService = Depends(get_service),
) -> TaskView:
    """Create a fresh practice table and a task to solve against it."""
    try:
        task = service.compose(kind=kind, template_key=template)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return task.to_view()


@router.post(
    "/check-solution",
    response_model=CheckSolutionResponse,
    response_model_exclude_none=True,
    tags=["tasks"],
    summary="Check a solution",
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def check_solution(
    body: CheckSolutionRequest, service: TrainerService = Depends(get_service)
) -> CheckSolutionResponse:
    """Run the submitted query and compare its result with the task's reference."""
    result = service.verify(body.task_id, body.query)
    return CheckSolutionResponse(correct=result.correct, message=result.message)


@router.get(
    "/tasks/{task_id}/schema",
    response_model=TaskSchemaResponse,
    tags=["tasks"],
    summary="Schema hint for a task",
    responses={404: {"model": ErrorResponse}},
)
def task_schema(task_id: str, service: TrainerService = Depends(get_service)) -> TaskSchemaResponse:
    task = service.task(task_id)
    return TaskSchemaResponse(table=task.kind.value, columns=service.task_schema(task_id))


@router.get("/health", response_model=HealthCheckResponse, tags=["system"])
def health(service: TrainerService = Depends(get_service)):
    if service.healthy():
        return HealthCheckResponse(status="ok")
    return JSONResponse(status_code=503, content={"status": "unavailable"})
