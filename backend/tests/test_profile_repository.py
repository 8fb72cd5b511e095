import asyncio
import json
from datetime import datetime, timezone

import psycopg
import pytest

from onboarding.chat.types import BudgetSnapshot, NextActionRecommendation, UserProfile
from onboarding.services.profile_repository import (
    PostgresProfileRepository,
    ProfilePersistenceError,
    StoredProfile,
    summarize_profile,
)

NOW = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)


class FakeCursor:
    def __init__(self, connection):
        self.connection = connection
        self._row = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def execute(self, query, params=None):
        if self.connection.fail:
            raise psycopg.OperationalError("connection refused")

        normalized = " ".join(query.split())
        rows = self.connection.rows
        self._row = None

        if normalized.startswith("INSERT INTO onboarding_profiles (user_id, consent_granted)"):
            user_id, granted = params
            row = rows.setdefault(user_id, self.connection.blank(user_id))
            row["consent_granted"] = granted
            return

        if normalized.startswith("INSERT INTO onboarding_profiles (user_id, profile)"):
            user_id, profile_json = params
            row = rows.setdefault(user_id, self.connection.blank(user_id))
            row["profile"] = {**row["profile"], **json.loads(profile_json)}
            return

        if normalized.startswith("INSERT INTO onboarding_profiles (user_id, goal)"):
            user_id, goal = params
            rows.setdefault(user_id, self.connection.blank(user_id))["goal"] = goal
            return

        if normalized.startswith("INSERT INTO onboarding_profiles (user_id, budget_snapshot, next_action)"):
            user_id, snapshot_json, action_json = params
            row = rows.setdefault(user_id, self.connection.blank(user_id))
            row["budget_snapshot"] = json.loads(snapshot_json)
            row["next_action"] = json.loads(action_json)
            return

        if normalized.startswith("SELECT user_id, consent_granted, profile"):
            (user_id,) = params
            self._row = rows.get(user_id)
            return

        raise AssertionError(f"Unexpected query: {normalized}")

    async def fetchone(self):
        return self._row


class FakeConnection:
    def __init__(self, fail=False):
        self.rows = {}
        self.fail = fail

    def blank(self, user_id):
        return {
            "user_id": user_id,
            "consent_granted": False,
            "profile": {},
            "goal": None,
            "budget_snapshot": None,
            "next_action": None,
            "updated_at": NOW,
        }

    def cursor(self):
        return FakeCursor(self)


class FakePool:
    def __init__(self, connection):
        self._connection = connection

    def connection(self):
        pool = self

        class _Ctx:
            async def __aenter__(self):
                return pool._connection

            async def __aexit__(self, exc_type, exc, tb):
                return False

        return _Ctx()


def _run(coro):
    return asyncio.run(coro)


def test_postgres_repository_round_trips_stored_profile() -> None:
    connection = FakeConnection()
    repo = PostgresProfileRepository(FakePool(connection))

    async def scenario():
        await repo.record_consent("u1", True)
        await repo.upsert_profile("u1", UserProfile(country="Canada"))
        await repo.upsert_profile("u1", UserProfile(country="Canada", income_monthly=4000))
        await repo.set_goal("u1", "investing")
        await repo.set_plan(
            "u1",
            BudgetSnapshot(ready=True, rule="50/30/20", needs=2000, wants=1200, save=800),
            NextActionRecommendation(action="Automate 600/month.", rationale="Compounding."),
        )
        return await repo.get("u1")

    stored = _run(scenario())

    assert stored.consent_granted is True
    assert stored.profile == UserProfile(country="Canada", income_monthly=4000)
    assert stored.goal == "investing"
    assert stored.budget_snapshot.needs == 2000
    assert stored.next_action.action == "Automate 600/month."
    assert stored.last_updated == NOW
    assert connection.rows["u1"]["profile"] == {"country": "Canada", "incomeMonthly": 4000}


def test_postgres_repository_get_missing_user() -> None:
    repo = PostgresProfileRepository(FakePool(FakeConnection()))

    assert _run(repo.get("nobody")) is None


def test_postgres_repository_wraps_driver_errors() -> None:
    repo = PostgresProfileRepository(FakePool(FakeConnection(fail=True)))

    with pytest.raises(ProfilePersistenceError):
        _run(repo.record_consent("u1", True))
    with pytest.raises(ProfilePersistenceError):
        _run(repo.get("u1"))


def test_summarize_profile_lists_known_fields() -> None:
    stored = StoredProfile(
        user_id="u1",
        profile=UserProfile(
            country="Canada",
            income_monthly=4000,
            savings_monthly=0,
            debt_balance=9000,
            risk_tolerance="low",
        ),
        goal="debt_paydown",
    )

    assert summarize_profile(stored) == (
        "Country: Canada | Monthly income: ~4000 | Savings per month: ~0 | "
        "Debt balance approx: 9000 | Risk tolerance: low | Goal: debt_paydown"
    )
    assert summarize_profile(StoredProfile(user_id="u2")) == "Profile not captured yet."
