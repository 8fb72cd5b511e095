"""Shared types for the deterministic onboarding conversation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

ChatState = Literal["WELCOME", "CONSENT", "PROFILE", "GOAL", "TIPS"]
GoalKind = Literal["emergency_fund", "debt_paydown", "investing"]
RiskTolerance = Literal["low", "med", "high"]
ToolName = Literal[
    "set_profile_fields",
    "set_goal",
    "get_budget_snapshot",
    "suggest_next_action",
    "faq_answer",
]

# Forward-only order; the index of a state is its rank.
STATE_SEQUENCE: tuple[str, ...] = ("WELCOME", "CONSENT", "PROFILE", "GOAL", "TIPS")
VALID_STATES: frozenset[str] = frozenset(STATE_SEQUENCE)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserProfile(BaseModel):
    """Partial financial profile; every field stays None until captured."""

    model_config = ConfigDict(populate_by_name=True)

    country: str | None = None
    income_monthly: int | None = Field(default=None, alias="incomeMonthly")
    savings_monthly: int | None = Field(default=None, alias="savingsMonthly")
    debt_balance: int | None = Field(default=None, alias="debtBalance")
    risk_tolerance: RiskTolerance | None = Field(default=None, alias="riskTolerance")

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BudgetSnapshot(BaseModel):
    ready: bool
    rule: Literal["50/30/20"] | None = None
    needs: int | None = None
    wants: int | None = None
    save: int | None = None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class NextActionRecommendation(BaseModel):
    action: str = Field(max_length=150)
    rationale: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump()


@dataclass(frozen=True)
class ToolCallRecord:
    """One audited helper invocation; immutable once appended."""

    name: str
    input: dict[str, Any]
    output: dict[str, Any]
    state_after: str
    timestamp: datetime = field(default_factory=utcnow)

    def to_wire(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "input": dict(self.input),
            "output": dict(self.output),
            "stateAfter": self.state_after,
            "timestamp": self.timestamp.isoformat(),
        }
