"""Orchestrates onboarding turns: per-user locking, persistence, and commit."""

from __future__ import annotations

import copy
import logging
from typing import Any

from onboarding.chat.context import ChatTurnResult, ConversationContext
from onboarding.chat.state_machine import TurnProcessor
from onboarding.chat.store import ConversationStore
from onboarding.chat.tools import (
    SetGoalCommand,
    SetProfileFieldsCommand,
    ToolResult,
    dispatch_tool,
    parse_tool_command,
)
from onboarding.chat.types import ToolCallRecord
from onboarding.services.profile_repository import (
    ProfilePersistenceError,
    ProfileRepository,
    StoredProfile,
    summarize_profile,
)

logger = logging.getLogger(__name__)


class OnboardingService:
    def __init__(
        self,
        store: ConversationStore,
        repository: ProfileRepository,
        processor: TurnProcessor | None = None,
    ) -> None:
        self.store = store
        self.repository = repository
        self.processor = processor or TurnProcessor()

    async def handle_turn(self, user_id: str, user_text: str) -> ChatTurnResult:
        """
        Run one turn for `user_id`.

        The turn is applied to a working copy; the copy replaces the stored
        context only after every persistence write for the turn succeeded.
        """
        async with self.store.lock(user_id):
            current = self.store.get_or_create(user_id)
            working = copy.deepcopy(current)

            result = self.processor.process(working, user_text)
            await self._persist_changes(current, working, result)

            self.store.save(working)
            return result

    async def run_tool(
        self,
        user_id: str,
        tool_name: str,
        args: dict[str, Any] | None,
    ) -> tuple[ToolResult, ToolCallRecord | None]:
        """Run one out-of-band tool command; raises ToolArgumentError on invalid input."""
        command = parse_tool_command(tool_name, args)

        async with self.store.lock(user_id):
            current = self.store.get_or_create(user_id)
            working = copy.deepcopy(current)

            tool_result, record = dispatch_tool(working, command)

            try:
                if isinstance(command, SetProfileFieldsCommand):
                    await self.repository.upsert_profile(user_id, working.profile)
                elif isinstance(command, SetGoalCommand):
                    await self.repository.set_goal(user_id, command.kind)
            except ProfilePersistenceError:
                logger.exception("Discarding %s for user %s after failed write", tool_name, user_id)
                raise

            self.store.save(working)
            return tool_result, record

    async def _persist_changes(
        self,
        before: ConversationContext,
        after: ConversationContext,
        result: ChatTurnResult,
    ) -> None:
        user_id = after.user_id
        try:
            if after.consent_granted != before.consent_granted:
                await self.repository.record_consent(user_id, after.consent_granted)
            if after.profile != before.profile:
                await self.repository.upsert_profile(user_id, after.profile)
            if after.goal is not None and after.goal != before.goal:
                await self.repository.set_goal(user_id, after.goal)
            if result.budget_snapshot is not None and result.next_action is not None:
                await self.repository.set_plan(user_id, result.budget_snapshot, result.next_action)
        except ProfilePersistenceError:
            logger.exception(
                "Discarding onboarding turn for user %s (%s -> %s) after failed write",
                user_id,
                before.current_state,
                after.current_state,
            )
            raise

    def get_context(self, user_id: str) -> ConversationContext | None:
        return self.store.get(user_id)

    def reset(self, user_id: str) -> bool:
        """Drop the live conversation; stored profile data is kept."""
        return self.store.reset(user_id)

    async def get_stored_profile(self, user_id: str) -> StoredProfile | None:
        return await self.repository.get(user_id)

    async def summarize(self, user_id: str) -> str:
        return summarize_profile(await self.repository.get(user_id))
