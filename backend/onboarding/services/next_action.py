"""Single next-step recommendation, chosen by a priority-ordered rule chain."""

from __future__ import annotations

from decimal import Decimal

from onboarding.chat.types import NextActionRecommendation, UserProfile
from onboarding.utils import round_half_up

EMERGENCY_MONTHS = 3
EMERGENCY_MIN_MONTHLY = 100
EMERGENCY_MONTHLY_RATIO = Decimal("0.2")
DEBT_TO_INCOME_TRIGGER = 4
INVESTING_MIN_MONTHLY = 150
INVESTING_MONTHLY_RATIO = Decimal("0.15")


def _emergency_fund(income: int) -> NextActionRecommendation:
    target = round_half_up(income * EMERGENCY_MONTHS)
    monthly = max(EMERGENCY_MIN_MONTHLY, round_half_up(income * EMERGENCY_MONTHLY_RATIO))
    return NextActionRecommendation(
        action=f"Set aside {monthly}/month toward a 3-month emergency fund (target: {target}).",
        rationale="A healthy emergency fund shields you from surprise expenses without relying on debt.",
    )


def _debt_paydown() -> NextActionRecommendation:
    return NextActionRecommendation(
        action="List debts by APR and funnel extra cash toward the highest-interest balance first.",
        rationale="High-interest debt compounds quickly; directing surplus cash there saves on interest.",
    )


def _investing(income: int) -> NextActionRecommendation:
    monthly = max(INVESTING_MIN_MONTHLY, round_half_up(income * INVESTING_MONTHLY_RATIO))
    return NextActionRecommendation(
        action=f"Automate a recurring {monthly}/month contribution into a diversified index fund.",
        rationale="Consistent contributions harness compounding over time; adjust amounts as your income grows.",
    )


def _cash_buffer() -> NextActionRecommendation:
    return NextActionRecommendation(
        action="Keep at least 6 months of essentials in a high-yield savings account before investing.",
        rationale=(
            "A larger cash buffer matches your lower risk appetite while keeping options open "
            "for future investing."
        ),
    )


def _review_cash_flow() -> NextActionRecommendation:
    return NextActionRecommendation(
        action="Review last month's spending and automate a savings transfer you can sustain.",
        rationale="Understanding where your cash goes each month keeps you in control.",
    )


def recommend_next_action(profile: UserProfile, goal: str | None) -> NextActionRecommendation:
    """
    Rules, first match wins:
    1. emergency_fund goal
    2. debt_paydown goal, or debt above 4x monthly income
    3. investing goal, or high risk tolerance
    4. low risk tolerance
    5. cash-flow review
    """
    income = profile.income_monthly or 0
    debt = profile.debt_balance or 0
    risk = profile.risk_tolerance

    if goal == "emergency_fund":
        return _emergency_fund(income)

    if goal == "debt_paydown" or debt > income * DEBT_TO_INCOME_TRIGGER:
        return _debt_paydown()

    if goal == "investing" or risk == "high":
        return _investing(income)

    if risk == "low":
        return _cash_buffer()

    return _review_cash_flow()
