"""
Request Classifier

Decides whether a request comes from a social-network crawler (which gets a
preview document) or from a person (who gets redirected).

Matching is a case-insensitive substring test against a list of signatures.
An empty or missing user agent counts as human, so unknown clients are
redirected rather than served a preview.
"""

from enum import Enum
from typing import Iterable, Optional, Tuple

DEFAULT_BOT_SIGNATURES: Tuple[str, ...] = (
    "facebookexternalhit",
    "Facebot",
    "Twitterbot",
    "TelegramBot",
    "Slackbot",
    "WhatsApp",
    "LinkedInBot",
    "Discordbot",
    "bot",
    "crawler",
    "spider",
    "scraper",
)


class Verdict(str, Enum):
    HUMAN = "human"
    BOT = "bot"


class RequestClassifier:
    """Substring matcher over a fixed, extensible set of crawler signatures."""

    def __init__(self, extra_signatures: Iterable[str] = ()):
        signatures = list(DEFAULT_BOT_SIGNATURES) + [s for s in extra_signatures if s and s.strip()]
        # Lower-cased once; order kept for readability in logs/tests
        self.signatures: Tuple[str, ...] = tuple(dict.fromkeys(s.strip().lower() for s in signatures))

    def classify(self, user_agent: Optional[str]) -> Verdict:
        if not user_agent:
            return Verdict.HUMAN
        ua = user_agent.lower()
        if any(signature in ua for signature in self.signatures):
            return Verdict.BOT
        return Verdict.HUMAN

    def is_bot(self, user_agent: Optional[str]) -> bool:
        return self.classify(user_agent) is Verdict.BOT


_default_classifier = RequestClassifier()


def classify(user_agent: Optional[str]) -> Verdict:
    """Classify with the built-in signatures only."""
    return _default_classifier.classify(user_agent)
