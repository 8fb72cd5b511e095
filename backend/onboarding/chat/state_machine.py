"""Deterministic onboarding state machine: WELCOME -> CONSENT -> PROFILE -> GOAL -> TIPS."""

from __future__ import annotations

import logging

from .constants import (
    CONSENT_ACCEPTED_PREFIX,
    CONSENT_KEYWORDS,
    CONSENT_RETRY_REPLY,
    FALLBACK_REPLY,
    FAQ_FOLLOW_UP,
    GOAL_PROMPT,
    GOAL_RETRY_REPLY,
    PROFILE_RETRY_HINT,
    TIPS_CONTINUATION_REPLY,
    TIPS_ESCALATION_REPLY,
    TIPS_RERUN_PATTERN,
    WELCOME_REPLY,
)
from .context import ChatTurnResult, ConversationContext
from .faq import faq_answer
from .goal_classifier import classify_goal
from .profile_fields import next_profile_field, normalize_text, parse_field, profile_prompt
from .tools import (
    SetGoalCommand,
    SetProfileFieldsCommand,
    apply_goal,
    apply_profile_fields,
    run_budget_snapshot,
    run_next_action,
)
from .types import VALID_STATES, BudgetSnapshot, NextActionRecommendation

logger = logging.getLogger(__name__)

DEFAULT_MAX_TURNS_BEFORE_ESCALATION = 8


def _result(context: ConversationContext, assistant_text: str, **kwargs) -> ChatTurnResult:
    return ChatTurnResult(
        assistant_text=assistant_text,
        next_state=context.current_state,
        context=context,
        **kwargs,
    )


def is_consent_message(text: str) -> bool:
    normalized = normalize_text(text)
    return any(keyword in normalized for keyword in CONSENT_KEYWORDS)


def render_plan(snapshot: BudgetSnapshot, next_action: NextActionRecommendation) -> str:
    lines = ["Here's your budget snapshot based on what you've shared:"]
    if snapshot.ready:
        lines.append(f"- Needs (50%): ~${snapshot.needs}")
        lines.append(f"- Wants (30%): ~${snapshot.wants}")
        lines.append(f"- Savings (20%): ~${snapshot.save}")
    else:
        lines.append("I need your income and savings to calculate the 50/30/20 breakdown.")
    lines.append("")
    lines.append(f"Next step: {next_action.action}")
    lines.append(f"Why: {next_action.rationale}")
    return "\n".join(lines)


class TurnProcessor:
    """
    Applies one user message to a conversation context.

    `process` mutates the given context in place and returns it on the result.
    Callers that need all-or-nothing turns pass a working copy.
    """

    def __init__(self, max_turns_before_escalation: int = DEFAULT_MAX_TURNS_BEFORE_ESCALATION) -> None:
        self.max_turns_before_escalation = max_turns_before_escalation

    def process(self, context: ConversationContext, user_text: str) -> ChatTurnResult:
        state = context.current_state
        if state not in VALID_STATES:
            logger.error(
                "Conversation for user %s is in unknown state %r; returning fallback reply",
                context.user_id,
                state,
            )
            return _result(context, FALLBACK_REPLY)

        context.turn_count += 1
        context.touch()

        handler = {
            "WELCOME": self._handle_welcome,
            "CONSENT": self._handle_consent,
            "PROFILE": self._handle_profile,
            "GOAL": self._handle_goal,
            "TIPS": self._handle_tips,
        }[state]
        result = handler(context, user_text)

        logger.info(
            "Onboarding turn %d for user %s: %s -> %s",
            context.turn_count,
            context.user_id,
            state,
            result.next_state,
        )
        return result

    def _handle_welcome(self, context: ConversationContext, user_text: str) -> ChatTurnResult:
        # The opening message is not interpreted; it only starts the conversation.
        context.current_state = "CONSENT"
        return _result(context, WELCOME_REPLY)

    def _handle_consent(self, context: ConversationContext, user_text: str) -> ChatTurnResult:
        if not is_consent_message(user_text):
            return _result(context, CONSENT_RETRY_REPLY)

        context.consent_granted = True
        context.current_state = "PROFILE"
        first_field = next_profile_field(context.profile)
        if first_field is None:
            # Profile already filled out of band.
            context.current_state = "GOAL"
            return _result(context, f"{CONSENT_ACCEPTED_PREFIX} {GOAL_PROMPT}")
        return _result(context, f"{CONSENT_ACCEPTED_PREFIX} {profile_prompt(first_field)}")

    def _handle_profile(self, context: ConversationContext, user_text: str) -> ChatTurnResult:
        pending_field = next_profile_field(context.profile)
        if pending_field is None:
            context.current_state = "GOAL"
            return _result(context, GOAL_PROMPT)

        parsed_value = parse_field(pending_field, user_text)
        if parsed_value is None:
            return _result(context, f"Got it. {profile_prompt(pending_field)} {PROFILE_RETRY_HINT}")

        following_field = next_profile_field(
            context.profile.model_copy(update={pending_field: parsed_value})
        )
        if following_field is None:
            context.current_state = "GOAL"

        command = SetProfileFieldsCommand(**{pending_field: parsed_value})
        _, record = apply_profile_fields(context, command)

        if following_field is None:
            return _result(context, f"Perfect. {GOAL_PROMPT}", tool_calls=[record])

        return _result(context, profile_prompt(following_field), tool_calls=[record])

    def _handle_goal(self, context: ConversationContext, user_text: str) -> ChatTurnResult:
        tool_calls = []
        if context.goal is None:
            detected_goal = classify_goal(user_text)
            if detected_goal is None:
                return _result(context, GOAL_RETRY_REPLY)
            context.current_state = "TIPS"
            _, goal_record = apply_goal(context, SetGoalCommand(kind=detected_goal))
            tool_calls.append(goal_record)
        else:
            # Goal already recorded out of band; it is never reclassified.
            context.current_state = "TIPS"

        return self._plan_result(context, tool_calls)

    def _handle_tips(self, context: ConversationContext, user_text: str) -> ChatTurnResult:
        if TIPS_RERUN_PATTERN.search(user_text):
            return self._plan_result(context, [])

        match = faq_answer(user_text)
        if match is not None:
            return _result(
                context,
                f"{match.answer}\n\n{FAQ_FOLLOW_UP}",
                faq_answer=match.answer,
            )

        if context.turn_count >= self.max_turns_before_escalation:
            return _result(context, TIPS_ESCALATION_REPLY)

        return _result(context, TIPS_CONTINUATION_REPLY)

    def _plan_result(self, context: ConversationContext, tool_calls: list) -> ChatTurnResult:
        snapshot, snapshot_record = run_budget_snapshot(context)
        next_action, next_record = run_next_action(context)
        return _result(
            context,
            render_plan(snapshot, next_action),
            tool_calls=[*tool_calls, snapshot_record, next_record],
            budget_snapshot=snapshot,
            next_action=next_action,
        )
