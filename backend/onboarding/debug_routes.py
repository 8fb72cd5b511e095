"""Read-only introspection of stored onboarding data."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from onboarding.chat_routes import TRANSIENT_ERROR_DETAIL, get_onboarding_service
from onboarding.services.onboarding_service import OnboardingService
from onboarding.services.profile_repository import ProfilePersistenceError, summarize_profile

router = APIRouter(prefix="/debug", tags=["debug"])


class DebugProfileResponse(BaseModel):
    userId: str
    consentGranted: bool
    profile: dict[str, Any]
    goal: str | None = None
    lastUpdated: str | None = None
    summary: str


@router.get("/profile", response_model=DebugProfileResponse)
async def debug_profile(
    user_id: str = Query(alias="userId", min_length=1),
    service: OnboardingService = Depends(get_onboarding_service),
) -> DebugProfileResponse:
    try:
        stored = await service.get_stored_profile(user_id)
    except ProfilePersistenceError as exc:
        raise HTTPException(status_code=503, detail=TRANSIENT_ERROR_DETAIL) from exc

    if stored is None:
        return DebugProfileResponse(
            userId=user_id,
            consentGranted=False,
            profile={},
            summary=summarize_profile(None),
        )

    return DebugProfileResponse(
        userId=user_id,
        consentGranted=stored.consent_granted,
        profile=stored.profile.to_wire(),
        goal=stored.goal,
        lastUpdated=stored.last_updated.isoformat() if stored.last_updated else None,
        summary=summarize_profile(stored),
    )
