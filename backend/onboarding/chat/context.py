from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .audit import AuditTrail
from .types import (
    BudgetSnapshot,
    ChatState,
    GoalKind,
    NextActionRecommendation,
    ToolCallRecord,
    UserProfile,
    utcnow,
)


@dataclass
class ConversationContext:
    user_id: str
    turn_count: int = 0
    consent_granted: bool = False
    current_state: ChatState = "WELCOME"
    profile: UserProfile = field(default_factory=UserProfile)
    goal: GoalKind | None = None
    audit_trail: AuditTrail = field(default_factory=AuditTrail)
    last_touched: datetime = field(default_factory=utcnow)

    def touch(self) -> None:
        self.last_touched = utcnow()


@dataclass
class ChatTurnResult:
    assistant_text: str
    next_state: str
    context: ConversationContext
    tool_calls: list[ToolCallRecord] = field(default_factory=list)
    budget_snapshot: BudgetSnapshot | None = None
    next_action: NextActionRecommendation | None = None
    faq_answer: str | None = None


def create_initial_context(user_id: str) -> ConversationContext:
    return ConversationContext(user_id=user_id)
