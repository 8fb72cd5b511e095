from onboarding.chat.types import UserProfile
from onboarding.services.next_action import recommend_next_action


def test_emergency_fund_goal_references_target_and_monthly() -> None:
    profile = UserProfile(income_monthly=4000, savings_monthly=500, risk_tolerance="med")

    out = recommend_next_action(profile, "emergency_fund")

    assert "12000" in out.action
    assert "800/month" in out.action


def test_emergency_fund_monthly_has_floor_of_100() -> None:
    profile = UserProfile(income_monthly=300, savings_monthly=20)

    out = recommend_next_action(profile, "emergency_fund")

    assert "100/month" in out.action
    assert "900" in out.action


def test_debt_goal_recommends_highest_apr_first() -> None:
    profile = UserProfile(income_monthly=4000, savings_monthly=500, risk_tolerance="high")

    out = recommend_next_action(profile, "debt_paydown")

    assert "APR" in out.action
    assert "highest-interest" in out.action


def test_large_debt_overrides_investing_goal() -> None:
    profile = UserProfile(income_monthly=2000, savings_monthly=100, debt_balance=8001)

    out = recommend_next_action(profile, "investing")

    assert "APR" in out.action


def test_debt_at_exactly_four_times_income_does_not_trigger() -> None:
    profile = UserProfile(income_monthly=2000, savings_monthly=100, debt_balance=8000)

    out = recommend_next_action(profile, "investing")

    assert "APR" not in out.action


def test_investing_goal_uses_contribution_floor_or_fifteen_percent() -> None:
    rich = recommend_next_action(UserProfile(income_monthly=4000, savings_monthly=500), "investing")
    small = recommend_next_action(UserProfile(income_monthly=600, savings_monthly=50), "investing")

    assert "600/month" in rich.action
    assert "recurring" in rich.action
    assert "150/month" in small.action


def test_high_risk_without_goal_gets_investing_action() -> None:
    out = recommend_next_action(UserProfile(income_monthly=4000, risk_tolerance="high"), None)

    assert "600/month" in out.action


def test_low_risk_without_goal_builds_cash_buffer() -> None:
    out = recommend_next_action(UserProfile(income_monthly=4000, risk_tolerance="low"), None)

    assert "6 months" in out.action


def test_default_is_cash_flow_review() -> None:
    out = recommend_next_action(UserProfile(income_monthly=4000, risk_tolerance="med"), None)

    assert "spending" in out.action
    assert out.rationale


def test_actions_fit_in_150_characters() -> None:
    profile = UserProfile(income_monthly=987654, savings_monthly=1, risk_tolerance="low")
    for goal in ("emergency_fund", "debt_paydown", "investing", None):
        assert len(recommend_next_action(profile, goal).action) <= 150
