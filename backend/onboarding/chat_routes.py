"""Deterministic onboarding chat endpoints (`/chat/onboarding`)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from onboarding.chat.context import ChatTurnResult
from onboarding.chat.tools import ToolArgumentError
from onboarding.chat.types import BudgetSnapshot, NextActionRecommendation, ToolCallRecord
from onboarding.services.onboarding_service import OnboardingService
from onboarding.services.profile_repository import ProfilePersistenceError

router = APIRouter(prefix="/chat/onboarding", tags=["onboarding-chat"])

TRANSIENT_ERROR_DETAIL = "We couldn't save your answer just now. Please send it again in a moment."


def get_onboarding_service(request: Request) -> OnboardingService:
    service = getattr(request.app.state, "onboarding_service", None)
    if service is None:
        raise HTTPException(status_code=500, detail="Onboarding service is not configured")
    return service


class ChatTurnRequest(BaseModel):
    userId: str = Field(min_length=1, max_length=200)
    userText: str = Field(min_length=1, max_length=2000)


class ToolCallItem(BaseModel):
    name: str
    input: dict[str, Any]
    output: dict[str, Any]
    stateAfter: str
    timestamp: str


class ChatTurnResponse(BaseModel):
    assistantText: str
    nextState: str
    toolCalls: list[ToolCallItem] = Field(default_factory=list)
    budgetSnapshot: BudgetSnapshot | None = None
    nextAction: NextActionRecommendation | None = None
    faqAnswer: str | None = None


class ToolRequest(BaseModel):
    userId: str = Field(min_length=1, max_length=200)
    name: str = Field(min_length=1, max_length=60)
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResponse(BaseModel):
    name: str
    result: dict[str, Any]
    toolCalls: list[ToolCallItem] = Field(default_factory=list)


class ConversationStateResponse(BaseModel):
    userId: str
    currentState: str
    turnCount: int
    consentGranted: bool
    profile: dict[str, Any]
    goal: str | None = None


class ResetResponse(BaseModel):
    reset: bool


def _tool_call_items(records: list[ToolCallRecord]) -> list[ToolCallItem]:
    return [ToolCallItem(**record.to_wire()) for record in records]


def _turn_response(result: ChatTurnResult) -> ChatTurnResponse:
    return ChatTurnResponse(
        assistantText=result.assistant_text,
        nextState=result.next_state,
        toolCalls=_tool_call_items(result.tool_calls),
        budgetSnapshot=result.budget_snapshot,
        nextAction=result.next_action,
        faqAnswer=result.faq_answer,
    )


@router.post("", response_model=ChatTurnResponse, response_model_exclude_none=True)
async def onboarding_turn(
    payload: ChatTurnRequest,
    service: OnboardingService = Depends(get_onboarding_service),
) -> ChatTurnResponse:
    """
    Process one onboarding turn.

    Example request:
    {"userId": "u-123", "userText": "I agree"}

    Example response:
    {
      "assistantText": "Thanks! Let's start with the basics. Which country do you currently live in?",
      "nextState": "PROFILE",
      "toolCalls": []
    }
    """
    try:
        result = await service.handle_turn(payload.userId, payload.userText)
    except ProfilePersistenceError as exc:
        raise HTTPException(status_code=503, detail=TRANSIENT_ERROR_DETAIL) from exc

    return _turn_response(result)


@router.post("/tools", response_model=ToolResponse)
async def onboarding_tool(
    payload: ToolRequest,
    service: OnboardingService = Depends(get_onboarding_service),
) -> ToolResponse:
    """Run one tool command out of band, e.g. `set_profile_fields` with `debtBalance`."""
    try:
        tool_result, record = await service.run_tool(payload.userId, payload.name, payload.args)
    except ToolArgumentError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ProfilePersistenceError as exc:
        raise HTTPException(status_code=503, detail=TRANSIENT_ERROR_DETAIL) from exc

    return ToolResponse(
        name=payload.name,
        result=tool_result.model_dump(by_alias=True, exclude_none=True),
        toolCalls=_tool_call_items([record] if record is not None else []),
    )


@router.get("/state", response_model=ConversationStateResponse)
async def onboarding_state(
    user_id: str = Query(alias="userId", min_length=1),
    service: OnboardingService = Depends(get_onboarding_service),
) -> ConversationStateResponse:
    context = service.get_context(user_id)
    if context is None:
        raise HTTPException(status_code=404, detail="No onboarding conversation for this user")

    return ConversationStateResponse(
        userId=context.user_id,
        currentState=context.current_state,
        turnCount=context.turn_count,
        consentGranted=context.consent_granted,
        profile=context.profile.to_wire(),
        goal=context.goal,
    )


@router.delete("/{user_id}", response_model=ResetResponse)
async def reset_onboarding(
    user_id: str,
    service: OnboardingService = Depends(get_onboarding_service),
) -> ResetResponse:
    return ResetResponse(reset=service.reset(user_id))
