"""Durable storage of onboarding profile, consent, goal and plan per user.

Two implementations share one async interface:
- `InMemoryProfileRepository` for single-process deployments and tests
- `PostgresProfileRepository` backed by the `onboarding_profiles` table
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Protocol

import psycopg

from onboarding.chat.types import BudgetSnapshot, NextActionRecommendation, UserProfile

if TYPE_CHECKING:
    from psycopg_pool import AsyncConnectionPool
else:
    AsyncConnectionPool = Any

logger = logging.getLogger(__name__)


class ProfilePersistenceError(Exception):
    """Raised when a profile write or read could not be completed durably."""


@dataclass
class StoredProfile:
    user_id: str
    consent_granted: bool = False
    profile: UserProfile = field(default_factory=UserProfile)
    goal: str | None = None
    budget_snapshot: BudgetSnapshot | None = None
    next_action: NextActionRecommendation | None = None
    last_updated: datetime | None = None


class ProfileRepository(Protocol):
    async def record_consent(self, user_id: str, granted: bool) -> None: ...

    async def upsert_profile(self, user_id: str, profile: UserProfile) -> None: ...

    async def set_goal(self, user_id: str, goal: str) -> None: ...

    async def set_plan(
        self,
        user_id: str,
        budget_snapshot: BudgetSnapshot,
        next_action: NextActionRecommendation,
    ) -> None: ...

    async def get(self, user_id: str) -> StoredProfile | None: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryProfileRepository:
    def __init__(self) -> None:
        self._rows: dict[str, StoredProfile] = {}

    def _get_or_create(self, user_id: str) -> StoredProfile:
        existing = self._rows.get(user_id)
        if existing is None:
            existing = StoredProfile(user_id=user_id)
            self._rows[user_id] = existing
        return existing

    async def record_consent(self, user_id: str, granted: bool) -> None:
        row = self._get_or_create(user_id)
        row.consent_granted = granted
        row.last_updated = _utcnow()

    async def upsert_profile(self, user_id: str, profile: UserProfile) -> None:
        row = self._get_or_create(user_id)
        row.profile = row.profile.model_copy(update=profile.model_dump(exclude_none=True))
        row.last_updated = _utcnow()

    async def set_goal(self, user_id: str, goal: str) -> None:
        row = self._get_or_create(user_id)
        row.goal = goal
        row.last_updated = _utcnow()

    async def set_plan(
        self,
        user_id: str,
        budget_snapshot: BudgetSnapshot,
        next_action: NextActionRecommendation,
    ) -> None:
        row = self._get_or_create(user_id)
        row.budget_snapshot = budget_snapshot
        row.next_action = next_action
        row.last_updated = _utcnow()

    async def get(self, user_id: str) -> StoredProfile | None:
        row = self._rows.get(user_id)
        if row is None:
            return None
        return StoredProfile(
            user_id=row.user_id,
            consent_granted=row.consent_granted,
            profile=row.profile.model_copy(),
            goal=row.goal,
            budget_snapshot=row.budget_snapshot,
            next_action=row.next_action,
            last_updated=row.last_updated,
        )


def _load_json(value: Any) -> dict[str, Any] | None:
    if value is None:
        return None
    if isinstance(value, (str, bytes)):
        return json.loads(value)
    return dict(value)


class PostgresProfileRepository:
    """
    Upserts into `onboarding_profiles`:

        user_id TEXT PRIMARY KEY,
        consent_granted BOOLEAN NOT NULL DEFAULT FALSE,
        profile JSONB NOT NULL DEFAULT '{}'::jsonb,
        goal TEXT,
        budget_snapshot JSONB,
        next_action JSONB,
        updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
    """

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self._pool = pool

    async def _execute(self, query: str, params: tuple[Any, ...]) -> None:
        try:
            async with self._pool.connection() as connection:
                async with connection.cursor() as cursor:
                    await cursor.execute(query, params)
        except psycopg.Error as exc:
            logger.exception("Profile write failed for user %s", params[0])
            raise ProfilePersistenceError("Profile storage is unavailable") from exc

    async def record_consent(self, user_id: str, granted: bool) -> None:
        await self._execute(
            """
            INSERT INTO onboarding_profiles (user_id, consent_granted)
            VALUES (%s, %s)
            ON CONFLICT (user_id) DO UPDATE
            SET consent_granted = EXCLUDED.consent_granted,
                updated_at = NOW()
            """,
            (user_id, granted),
        )

    async def upsert_profile(self, user_id: str, profile: UserProfile) -> None:
        # jsonb `||` merges keys, so fields missing from this write are kept.
        await self._execute(
            """
            INSERT INTO onboarding_profiles (user_id, profile)
            VALUES (%s, %s::jsonb)
            ON CONFLICT (user_id) DO UPDATE
            SET profile = onboarding_profiles.profile || EXCLUDED.profile,
                updated_at = NOW()
            """,
            (user_id, json.dumps(profile.to_wire())),
        )

    async def set_goal(self, user_id: str, goal: str) -> None:
        await self._execute(
            """
            INSERT INTO onboarding_profiles (user_id, goal)
            VALUES (%s, %s)
            ON CONFLICT (user_id) DO UPDATE
            SET goal = EXCLUDED.goal,
                updated_at = NOW()
            """,
            (user_id, goal),
        )

    async def set_plan(
        self,
        user_id: str,
        budget_snapshot: BudgetSnapshot,
        next_action: NextActionRecommendation,
    ) -> None:
        await self._execute(
            """
            INSERT INTO onboarding_profiles (user_id, budget_snapshot, next_action)
            VALUES (%s, %s::jsonb, %s::jsonb)
            ON CONFLICT (user_id) DO UPDATE
            SET budget_snapshot = EXCLUDED.budget_snapshot,
                next_action = EXCLUDED.next_action,
                updated_at = NOW()
            """,
            (
                user_id,
                json.dumps(budget_snapshot.to_wire()),
                json.dumps(next_action.to_wire()),
            ),
        )

    async def get(self, user_id: str) -> StoredProfile | None:
        try:
            async with self._pool.connection() as connection:
                async with connection.cursor() as cursor:
                    await cursor.execute(
                        """
                        SELECT user_id, consent_granted, profile, goal,
                               budget_snapshot, next_action, updated_at
                        FROM onboarding_profiles
                        WHERE user_id = %s
                        """,
                        (user_id,),
                    )
                    row = await cursor.fetchone()
        except psycopg.Error as exc:
            logger.exception("Profile read failed for user %s", user_id)
            raise ProfilePersistenceError("Profile storage is unavailable") from exc

        if row is None:
            return None

        snapshot = _load_json(row.get("budget_snapshot"))
        next_action = _load_json(row.get("next_action"))
        return StoredProfile(
            user_id=row["user_id"],
            consent_granted=bool(row["consent_granted"]),
            profile=UserProfile.model_validate(_load_json(row.get("profile")) or {}),
            goal=row.get("goal"),
            budget_snapshot=BudgetSnapshot.model_validate(snapshot) if snapshot else None,
            next_action=NextActionRecommendation.model_validate(next_action) if next_action else None,
            last_updated=row.get("updated_at"),
        )


def summarize_profile(stored: StoredProfile | None) -> str:
    if stored is None:
        return "No profile data stored yet."

    profile = stored.profile
    parts: list[str] = []
    if profile.country:
        parts.append(f"Country: {profile.country}")
    if profile.income_monthly:
        parts.append(f"Monthly income: ~{profile.income_monthly}")
    if profile.savings_monthly is not None:
        parts.append(f"Savings per month: ~{profile.savings_monthly}")
    if profile.debt_balance:
        parts.append(f"Debt balance approx: {profile.debt_balance}")
    if profile.risk_tolerance:
        parts.append(f"Risk tolerance: {profile.risk_tolerance}")
    if stored.goal:
        parts.append(f"Goal: {stored.goal}")

    if not parts:
        return "Profile not captured yet."
    return " | ".join(parts)
