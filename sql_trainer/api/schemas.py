"""Request/response bodies of the HTTP boundary."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from sql_trainer.domain.models import SchemaColumn


class CheckSolutionRequest(BaseModel):
    task_id: str = Field(..., examples=["task_3f2a9c0e6b1d4e7f8a9b0c1d2e3f4a5b"])
    query: str = Field(..., examples=["SELECT * FROM employees WHERE salary > 50000"])


class CheckSolutionResponse(BaseModel):
    correct: bool = Field(..., examples=[True])
    message: Optional[str] = Field(None, examples=["Correct! Your query returns the expected result."])


class TaskSchemaResponse(BaseModel):
    table: str
    columns: List[SchemaColumn]


class HealthCheckResponse(BaseModel):
    status: str = Field(..., examples=["ok"])


class ErrorResponse(BaseModel):
    detail: str
