from __future__ import annotations

from .constants import GOAL_RULES


def classify_goal(text: str) -> str | None:
    """Return the goal kind for free text, or None when nothing matches."""
    normalized = text.strip().lower()
    for goal, keywords, pattern in GOAL_RULES:
        if any(keyword in normalized for keyword in keywords):
            return goal
        if pattern.search(normalized):
            return goal
    return None
