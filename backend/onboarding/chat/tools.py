"""Closed set of onboarding tool commands, validated at the boundary and dispatched by type."""

from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, root_validator, validator

from .constants import MAX_AMOUNT
from .context import ConversationContext
from .faq import faq_answer
from .types import BudgetSnapshot, GoalKind, NextActionRecommendation, RiskTolerance, ToolCallRecord, UserProfile
from onboarding.services.budget_snapshot import compute_budget_snapshot
from onboarding.services.next_action import recommend_next_action


class ToolArgumentError(Exception):
    """Raised when a tool command payload is invalid or not allowed for the context."""


class _Command(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)


class SetProfileFieldsCommand(_Command):
    name: Literal["set_profile_fields"] = "set_profile_fields"
    country: str | None = Field(default=None, max_length=120)
    income_monthly: int | None = Field(default=None, gt=0, le=MAX_AMOUNT, alias="incomeMonthly")
    savings_monthly: int | None = Field(default=None, ge=0, le=MAX_AMOUNT, alias="savingsMonthly")
    debt_balance: int | None = Field(default=None, ge=0, le=MAX_AMOUNT, alias="debtBalance")
    risk_tolerance: RiskTolerance | None = Field(default=None, alias="riskTolerance")

    @validator("country")
    def validate_country(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped = value.strip()
        if not stripped:
            raise ValueError("country must not be blank")
        return stripped

    @root_validator(skip_on_failure=True)
    def ensure_any_field(cls, values):
        fields = ("country", "income_monthly", "savings_monthly", "debt_balance", "risk_tolerance")
        if all(values.get(key) is None for key in fields):
            raise ValueError("Provide at least one profile field")
        return values

    def fields(self) -> dict[str, Any]:
        return self.model_dump(exclude={"name"}, exclude_none=True)


class SetGoalCommand(_Command):
    name: Literal["set_goal"] = "set_goal"
    kind: GoalKind


class GetBudgetSnapshotCommand(_Command):
    name: Literal["get_budget_snapshot"] = "get_budget_snapshot"


class SuggestNextActionCommand(_Command):
    name: Literal["suggest_next_action"] = "suggest_next_action"


class FaqAnswerCommand(_Command):
    name: Literal["faq_answer"] = "faq_answer"
    question: str = Field(min_length=1, max_length=2000)


ToolCommand = Annotated[
    Union[
        SetProfileFieldsCommand,
        SetGoalCommand,
        GetBudgetSnapshotCommand,
        SuggestNextActionCommand,
        FaqAnswerCommand,
    ],
    Field(discriminator="name"),
]

_COMMAND_ADAPTER: TypeAdapter[ToolCommand] = TypeAdapter(ToolCommand)

_TOOL_DESCRIPTIONS: dict[str, tuple[type[_Command], str]] = {
    "set_profile_fields": (SetProfileFieldsCommand, "Update one or more named profile fields."),
    "set_goal": (SetGoalCommand, "Record the user's primary goal (once per conversation)."),
    "get_budget_snapshot": (GetBudgetSnapshotCommand, "Compute the 50/30/20 budget snapshot."),
    "suggest_next_action": (SuggestNextActionCommand, "Recommend one next step for profile + goal."),
    "faq_answer": (FaqAnswerCommand, "Answer a common onboarding question from the FAQ corpus."),
}

TOOL_NAMES: frozenset[str] = frozenset(_TOOL_DESCRIPTIONS)
WRITE_TOOL_NAMES: frozenset[str] = frozenset({"set_profile_fields", "set_goal"})


class ProfileFieldsResult(BaseModel):
    ok: bool = True
    profile: UserProfile


class GoalResult(BaseModel):
    ok: bool = True
    goal: GoalKind


class FaqResult(BaseModel):
    match: str | None = None
    answer: str | None = None


ToolResult = Union[ProfileFieldsResult, GoalResult, BudgetSnapshot, NextActionRecommendation, FaqResult]


def tool_schemas() -> list[dict[str, Any]]:
    """JSON schemas for every command, for agent-driven callers."""
    schemas: list[dict[str, Any]] = []
    for name, (model_cls, description) in _TOOL_DESCRIPTIONS.items():
        parameters = model_cls.model_json_schema(by_alias=True)
        parameters.get("properties", {}).pop("name", None)
        schemas.append({"name": name, "description": description, "parameters": parameters})
    return schemas


def parse_tool_command(tool_name: str, args: dict[str, Any] | None) -> ToolCommand:
    if tool_name not in TOOL_NAMES:
        raise ToolArgumentError(f"Unknown tool: {tool_name}")
    payload = dict(args or {})
    payload["name"] = tool_name
    try:
        return _COMMAND_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise ToolArgumentError(str(exc)) from exc


def apply_profile_fields(
    context: ConversationContext,
    command: SetProfileFieldsCommand,
) -> tuple[ProfileFieldsResult, ToolCallRecord]:
    fields = command.fields()
    context.profile = context.profile.model_copy(update=fields)
    record = context.audit_trail.record(
        "set_profile_fields",
        {"userId": context.user_id, **UserProfile(**fields).to_wire()},
        {"ok": True},
        context.current_state,
    )
    return ProfileFieldsResult(profile=context.profile), record


def apply_goal(context: ConversationContext, command: SetGoalCommand) -> tuple[GoalResult, ToolCallRecord]:
    if context.goal is not None:
        raise ToolArgumentError(f"Goal already set to {context.goal}")
    context.goal = command.kind
    record = context.audit_trail.record(
        "set_goal",
        {"userId": context.user_id, "kind": command.kind},
        {"ok": True},
        context.current_state,
    )
    return GoalResult(goal=command.kind), record


def run_budget_snapshot(context: ConversationContext) -> tuple[BudgetSnapshot, ToolCallRecord]:
    snapshot = compute_budget_snapshot(context.profile)
    record = context.audit_trail.record(
        "get_budget_snapshot",
        {"userId": context.user_id, **context.profile.to_wire()},
        snapshot.to_wire(),
        context.current_state,
    )
    return snapshot, record


def run_next_action(context: ConversationContext) -> tuple[NextActionRecommendation, ToolCallRecord]:
    recommendation = recommend_next_action(context.profile, context.goal)
    record = context.audit_trail.record(
        "suggest_next_action",
        {"userId": context.user_id, "goal": context.goal, **context.profile.to_wire()},
        recommendation.to_wire(),
        context.current_state,
    )
    return recommendation, record


def dispatch_tool(
    context: ConversationContext,
    command: ToolCommand,
) -> tuple[ToolResult, ToolCallRecord | None]:
    """Run one validated command against a context; FAQ lookups are not audited."""
    if isinstance(command, SetProfileFieldsCommand):
        return apply_profile_fields(context, command)

    if isinstance(command, SetGoalCommand):
        return apply_goal(context, command)

    if isinstance(command, GetBudgetSnapshotCommand):
        return run_budget_snapshot(context)

    if isinstance(command, SuggestNextActionCommand):
        return run_next_action(context)

    if isinstance(command, FaqAnswerCommand):
        match = faq_answer(command.question)
        if match is None:
            return FaqResult(), None
        return FaqResult(match=match.pattern, answer=match.answer), None

    raise ToolArgumentError(f"Unsupported tool: {type(command).__name__}")
