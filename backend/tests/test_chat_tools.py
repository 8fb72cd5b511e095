import pytest

from onboarding.chat import tools
from onboarding.chat.context import create_initial_context
from onboarding.chat.types import UserProfile


def test_parse_tool_command_builds_typed_command() -> None:
    command = tools.parse_tool_command("set_profile_fields", {"debtBalance": 12000})

    assert isinstance(command, tools.SetProfileFieldsCommand)
    assert command.debt_balance == 12000


def test_parse_tool_command_rejects_unknown_tool() -> None:
    with pytest.raises(tools.ToolArgumentError, match="Unknown tool"):
        tools.parse_tool_command("transfer_funds", {})


def test_parse_tool_command_rejects_invalid_payloads() -> None:
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("set_profile_fields", {})
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("set_profile_fields", {"incomeMonthly": 0})
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("set_profile_fields", {"country": "   "})
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("set_profile_fields", {"riskTolerance": "extreme"})
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("set_goal", {"kind": "buy_a_boat"})
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("get_budget_snapshot", {"unexpected": 1})


def test_parse_tool_command_amount_bounds() -> None:
    command = tools.parse_tool_command("set_profile_fields", {"savingsMonthly": 0, "debtBalance": 0})

    assert command.savings_monthly == 0
    assert command.debt_balance == 0

    for field in ("incomeMonthly", "savingsMonthly", "debtBalance"):
        with pytest.raises(tools.ToolArgumentError):
            tools.parse_tool_command("set_profile_fields", {field: 10**30})
    with pytest.raises(tools.ToolArgumentError):
        tools.parse_tool_command("set_profile_fields", {"savingsMonthly": -1})


def test_dispatch_set_profile_fields_updates_only_named_fields() -> None:
    context = create_initial_context("u1")
    context.profile = UserProfile(country="Canada", income_monthly=4000)

    command = tools.parse_tool_command("set_profile_fields", {"debtBalance": 20000})
    result, record = tools.dispatch_tool(context, command)

    assert context.profile.country == "Canada"
    assert context.profile.income_monthly == 4000
    assert context.profile.debt_balance == 20000
    assert result.profile.debt_balance == 20000
    assert record is not None
    assert record.input == {"userId": "u1", "debtBalance": 20000}
    assert context.current_state == "WELCOME"


def test_dispatch_set_goal_only_once() -> None:
    context = create_initial_context("u1")

    result, record = tools.dispatch_tool(context, tools.parse_tool_command("set_goal", {"kind": "investing"}))

    assert result.goal == "investing"
    assert record.name == "set_goal"
    with pytest.raises(tools.ToolArgumentError, match="already set"):
        tools.dispatch_tool(context, tools.parse_tool_command("set_goal", {"kind": "debt_paydown"}))
    assert context.goal == "investing"


def test_dispatch_snapshot_and_next_action_are_audited() -> None:
    context = create_initial_context("u1")
    context.profile = UserProfile(income_monthly=4000, savings_monthly=0, debt_balance=20000)

    snapshot, _ = tools.dispatch_tool(context, tools.parse_tool_command("get_budget_snapshot", None))
    action, _ = tools.dispatch_tool(context, tools.parse_tool_command("suggest_next_action", {}))

    assert snapshot.save == 800
    assert "APR" in action.action
    assert [record.name for record in context.audit_trail] == ["get_budget_snapshot", "suggest_next_action"]


def test_dispatch_faq_is_not_audited() -> None:
    context = create_initial_context("u1")

    hit, hit_record = tools.dispatch_tool(context, tools.parse_tool_command("faq_answer", {"question": "emergency fund?"}))
    miss, _ = tools.dispatch_tool(context, tools.parse_tool_command("faq_answer", {"question": "weather?"}))

    assert hit.answer.startswith("An emergency fund")
    assert hit_record is None
    assert miss.answer is None
    assert len(context.audit_trail) == 0


def test_tool_schemas_cover_every_command() -> None:
    schemas = {schema["name"]: schema for schema in tools.tool_schemas()}

    assert set(schemas) == set(tools.TOOL_NAMES)
    profile_props = schemas["set_profile_fields"]["parameters"]["properties"]
    assert "debtBalance" in profile_props
    assert "name" not in profile_props
