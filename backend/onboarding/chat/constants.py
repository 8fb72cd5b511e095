from __future__ import annotations

import re

CONSENT_KEYWORDS: tuple[str, ...] = ("i agree", "yes", "agree", "consent", "sure", "ok")

# Collected in this order; debt_balance is only settable through `set_profile_fields`.
PROFILE_FIELD_ORDER: tuple[str, ...] = (
    "country",
    "income_monthly",
    "savings_monthly",
    "risk_tolerance",
)

AMOUNT_FIELDS: frozenset[str] = frozenset({"income_monthly", "savings_monthly", "debt_balance"})
# Answers above this are treated as unparsable.
MAX_AMOUNT = 10**12

# Iteration order matters: first keyword contained in the answer wins.
RISK_TOLERANCE_KEYWORDS: dict[str, str] = {
    "low": "low",
    "conservative": "low",
    "cautious": "low",
    "medium": "med",
    "moderate": "med",
    "balanced": "med",
    "high": "high",
    "aggressive": "high",
    "growth": "high",
}

# Checked in declaration order; keywords first, then the broader pattern.
GOAL_RULES: tuple[tuple[str, tuple[str, ...], re.Pattern[str]], ...] = (
    (
        "emergency_fund",
        ("emergency", "rainy day", "safety net"),
        re.compile(r"emergency"),
    ),
    (
        "debt_paydown",
        ("debt", "pay off", "credit card", "loan"),
        re.compile(r"debt|payoff|pay off|loan"),
    ),
    (
        "investing",
        ("invest", "growth", "retirement", "long term"),
        re.compile(r"invest|retire|growth|portfolio|crypto"),
    ),
)

PROFILE_PROMPTS: dict[str, str] = {
    "country": "Which country do you currently live in?",
    "income_monthly": (
        "Roughly how much do you take home each month? "
        "You can answer with a range like $3k-$4k."
    ),
    "savings_monthly": "How much are you able to set aside for savings monthly? Ballpark is perfect.",
    "risk_tolerance": "What's your comfort with risk? Low, medium, or high?",
}
PROFILE_FALLBACK_PROMPT = "Tell me a bit more about your finances."
PROFILE_RETRY_HINT = "(Feel free to give a quick range or single word.)"

WELCOME_REPLY = (
    "Hi! I'm your finance onboarding guide. I can help you build a quick budget snapshot "
    "and suggest your next best step. To begin, I need your consent to process the info "
    "you share. Reply with \"I agree\" to continue."
)
CONSENT_RETRY_REPLY = (
    "Totally fine. Just let me know when you're ready by replying with \"I agree\" "
    "so I can capture your info securely."
)
CONSENT_ACCEPTED_PREFIX = "Thanks! Let's start with the basics."

GOAL_PROMPT = (
    "What is your top focus right now? Options: building an emergency fund, "
    "paying down debt, or investing for growth."
)
GOAL_RETRY_REPLY = (
    "Thanks for sharing. Could you pick one focus: emergency fund, paying down debt, or investing?"
)

FAQ_FOLLOW_UP = "Have more questions or want to adjust any profile details? I'm here to help."
TIPS_ESCALATION_REPLY = (
    "Thanks for the update! For deeper planning or on-chain steps, a human coach will "
    "follow up soon. Anything else you'd like to cover?"
)
TIPS_CONTINUATION_REPLY = (
    "Thanks for the note. If you want to re-run the budget snapshot, just ask, "
    "or ask me about emergency funds, paying off debt, or the 50/30/20 rule."
)
TIPS_RERUN_PATTERN = re.compile(r"snapshot|recalculate|re-?run", re.IGNORECASE)

FALLBACK_REPLY = "I'm here to help you with your finance onboarding journey."

# (key, pattern, answer); first match wins.
FAQ_CORPUS: tuple[tuple[str, re.Pattern[str], str], ...] = (
    (
        "emergency_fund",
        re.compile(r"emergency fund", re.IGNORECASE),
        "An emergency fund is a cash buffer that covers 3-6 months of essential expenses. "
        "It protects you from unexpected costs without going into debt.",
    ),
    (
        "debt_snowball",
        re.compile(r"debt (snowball|pay ?off)", re.IGNORECASE),
        "The debt snowball approach means paying minimums on all debts, then focusing extra "
        "cash on the smallest balance first. Each payoff builds momentum.",
    ),
    (
        "budgeting",
        re.compile(r"(budget|50/?30/?20)", re.IGNORECASE),
        "The 50/30/20 framework allocates ~50% of income to needs, 30% to wants, and 20% to "
        "savings or debt paydown. Adjust as your goals evolve.",
    ),
)
