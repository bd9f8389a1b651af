"""System-level routes for liveness checks and service metadata."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from ..config import Settings
from ..schemas import ApiInfoResponse, HealthResponse
from ..services import PresenceHub

router = APIRouter(tags=["system"])


def get_presence_hub(request: Request) -> PresenceHub:
    return request.app.state.presence_hub


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/health", response_model=HealthResponse)
def healthcheck(hub: PresenceHub = Depends(get_presence_hub)) -> HealthResponse:
    """Report liveness along with the number of connected participants."""

    return HealthResponse(users=hub.participant_count)


@router.get("/api", response_model=ApiInfoResponse)
def api_info(settings: Settings = Depends(get_app_settings)) -> ApiInfoResponse:
    return ApiInfoResponse(service=settings.app_name, version=settings.api_version)


__all__ = ["get_presence_hub", "router"]
