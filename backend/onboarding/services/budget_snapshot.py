"""50/30/20 budget breakdown derived from a captured profile."""

from __future__ import annotations

from decimal import Decimal

from onboarding.chat.types import BudgetSnapshot, UserProfile
from onboarding.utils import round_half_up

BUDGET_RULE = "50/30/20"
NEEDS_RATIO = Decimal("0.5")
WANTS_RATIO = Decimal("0.3")
SAVE_FLOOR_RATIO = Decimal("0.2")


def is_budget_ready(profile: UserProfile) -> bool:
    income = profile.income_monthly
    savings = profile.savings_monthly
    return income is not None and income > 0 and savings is not None and savings >= 0


def compute_budget_snapshot(profile: UserProfile) -> BudgetSnapshot:
    """
    Split monthly income into needs / wants / save.

    `save` is a target: it never drops below 20% of income, even when the
    reported savings are lower, so the three parts can sum above income.
    """
    if not is_budget_ready(profile):
        return BudgetSnapshot(ready=False)

    income = Decimal(profile.income_monthly)
    savings = Decimal(profile.savings_monthly)

    return BudgetSnapshot(
        ready=True,
        rule=BUDGET_RULE,
        needs=round_half_up(income * NEEDS_RATIO),
        wants=round_half_up(income * WANTS_RATIO),
        save=round_half_up(max(savings, income * SAVE_FLOOR_RATIO)),
    )
