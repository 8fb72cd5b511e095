"""Static pattern-matched answers for common onboarding questions."""

from __future__ import annotations

from dataclasses import dataclass

from .constants import FAQ_CORPUS


@dataclass(frozen=True)
class FaqMatch:
    key: str
    pattern: str
    answer: str


def faq_answer(question: str) -> FaqMatch | None:
    for key, pattern, answer in FAQ_CORPUS:
        if pattern.search(question):
            return FaqMatch(key=key, pattern=pattern.pattern, answer=answer)
    return None
