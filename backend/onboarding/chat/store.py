"""In-process registry of onboarding conversations keyed by user id."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone

from .context import ConversationContext, create_initial_context

logger = logging.getLogger(__name__)


class ConversationStore:
    """
    Holds exactly one context per user id for the life of the process.

    Contexts are volatile and never expire on their own; `reset`, `evict_idle`
    and `clear` are the only ways to drop them. `lock(user_id)` serializes turns
    for one user while leaving other users independent.
    """

    def __init__(self) -> None:
        self._contexts: dict[str, ConversationContext] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def lock(self, user_id: str) -> asyncio.Lock:
        existing = self._locks.get(user_id)
        if existing is None:
            existing = asyncio.Lock()
            self._locks[user_id] = existing
        return existing

    def get(self, user_id: str) -> ConversationContext | None:
        return self._contexts.get(user_id)

    def get_or_create(self, user_id: str) -> ConversationContext:
        existing = self._contexts.get(user_id)
        if existing is not None:
            return existing
        fresh = create_initial_context(user_id)
        self._contexts[user_id] = fresh
        return fresh

    def save(self, context: ConversationContext) -> None:
        self._contexts[context.user_id] = context

    def reset(self, user_id: str) -> bool:
        # The lock outlives the context: a woken waiter may still be about to run.
        removed = self._contexts.pop(user_id, None)
        if removed is not None:
            logger.info("Reset onboarding conversation for user %s", user_id)
        return removed is not None

    def evict_idle(self, max_idle_seconds: float, now: datetime | None = None) -> list[str]:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(seconds=max_idle_seconds)
        stale_ids = [
            user_id
            for user_id, context in self._contexts.items()
            if context.last_touched < cutoff and not self.lock(user_id).locked()
        ]
        for user_id in stale_ids:
            self.reset(user_id)
        if stale_ids:
            logger.info("Evicted %d idle onboarding conversations", len(stale_ids))
        return stale_ids

    def clear(self) -> None:
        self._contexts.clear()
        self._locks.clear()

    def __len__(self) -> int:
        return len(self._contexts)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._contexts
