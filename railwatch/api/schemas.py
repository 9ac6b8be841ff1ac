"""Pydantic request/response models for the host bridge API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from railwatch.models.resources import ResourceKind


class ErrorResponse(BaseModel):
    error: str
    detail: str


class ResourceRefRequest(BaseModel):
    """A tree node plus the parent ids needed to expand it or read its logs."""

    kind: ResourceKind
    id: str = Field(min_length=1, max_length=128)
    project_id: str | None = Field(default=None, max_length=128)
    environment_id: str | None = Field(default=None, max_length=128)


class CredentialRequest(BaseModel):
    token: str = Field(min_length=1, max_length=512)


class ProjectOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class NamedResourceOut(BaseModel):
    """Environment or service."""

    id: str
    name: str
    project_id: str


class DeploymentOut(BaseModel):
    id: str
    status: str
    static_url: str | None = None
    created_at: datetime
    updated_at: datetime
    service_id: str
    environment_id: str


class LogViewOut(BaseModel):
    view_id: str
    source: str
    resource_id: str
    auto_refresh: bool


class AutoRefreshOut(BaseModel):
    auto_refresh: bool


class FeedEventOut(BaseModel):
    seq: int
    type: str
    payload: dict[str, Any]
    emitted_at: datetime


class HealthResponse(BaseModel):
    status: str
    version: str
    monitor: dict[str, Any]
