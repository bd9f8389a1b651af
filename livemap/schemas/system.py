"""Schemas served by the system endpoints."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    users: int = Field(..., ge=0, description="Participants currently connected")


class ApiInfoResponse(BaseModel):
    service: str
    version: str
