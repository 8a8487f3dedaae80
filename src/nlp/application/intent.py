"""
Intent Classification
=====================

Rule-based classification of free text into an IntentType.

Each intent owns one or more weighted patterns. A pattern combines exact
phrases, regular expressions and keywords; the highest pattern score wins.
Classification is deterministic: the same text always yields the same
intent and confidence.
"""

import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Pattern, Sequence, Tuple
from types import MappingProxyType

from nlp.domain import AccessPolicy, Intent, IntentType
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

PHRASE_FACTOR = 0.9
REGEX_FACTOR = 0.8
KEYWORD_FACTOR = 0.6

STOP_WORDS = frozenset({
    "a", "an", "the", "and", "or", "but", "in", "on", "at", "to", "for",
    "of", "with", "by", "from", "is", "are", "was", "were", "be", "been",
    "it", "this", "that", "my", "me", "i", "please",
})

_NON_WORD = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class IntentPattern:
    """Weighted recognition pattern for one intent."""
    exact_phrases: Tuple[str, ...] = ()
    regexes: Tuple[Pattern, ...] = ()
    keywords: Tuple[str, ...] = ()
    weight: float = 1.0

    def score(self, normalized: str, words: Sequence[str]) -> float:
        """
        Score normalized text against this pattern.

        An exact phrase equal to the whole text short-circuits to the
        pattern weight. Keywords only count when no phrase or regex hit.
        """
        score = 0.0
        phrase_or_regex_hit = False

        for phrase in self.exact_phrases:
            if normalized == phrase:
                return self.weight
            if phrase in normalized:
                score += self.weight * PHRASE_FACTOR
                phrase_or_regex_hit = True

        for regex in self.regexes:
            if regex.search(normalized):
                score += self.weight * REGEX_FACTOR
                phrase_or_regex_hit = True

        if not phrase_or_regex_hit and self.keywords and words:
            matched = sum(1 for keyword in self.keywords if keyword in words)
            score += (matched / len(self.keywords)) * self.weight * KEYWORD_FACTOR

        return min(score, 1.0)


def _pattern(
    phrases: Sequence[str] = (),
    regexes: Sequence[str] = (),
    keywords: Sequence[str] = (),
    weight: float = 1.0,
) -> IntentPattern:
    return IntentPattern(
        exact_phrases=tuple(phrases),
        regexes=tuple(re.compile(r) for r in regexes),
        keywords=tuple(keywords),
        weight=weight,
    )


# Declaration order is the tie-break order.
INTENT_PATTERNS: Mapping[IntentType, Tuple[IntentPattern, ...]] = MappingProxyType({
    IntentType.SHOW_TICKETS: (
        _pattern(
            ["show my tickets", "my tickets", "list my tickets", "view my tickets"],
            [r"\b(?:show|list|view|display)\s+(?:me\s+)?my\s+tickets\b"],
        ),
        _pattern(
            ["what tickets do i have"],
            [r"\btickets\s+for\s+me\b", r"\bwhat\s+tickets\b"],
            ["what", "have", "mine"],
            weight=0.8,
        ),
        _pattern(["tickets"], [r"^tickets$"], weight=0.5),
    ),
    IntentType.SHOW_ACTIVE_TICKETS: (
        _pattern(
            ["active tickets", "open tickets", "current tickets", "ongoing tickets"],
            [r"\b(?:active|open|current|ongoing)\s+tickets?\b"],
            ["active", "open", "current", "ongoing"],
        ),
    ),
    IntentType.SHOW_COMPLETED_TICKETS: (
        _pattern(
            ["completed tickets", "finished tickets", "closed tickets", "done tickets",
             "past tickets"],
            [r"\b(?:completed|finished|closed|done|past)\s+tickets?\b"],
            ["completed", "finished", "closed", "done"],
        ),
    ),
    IntentType.SEARCH_TICKETS: (
        _pattern(
            ["search tickets", "search for tickets", "find tickets", "look for tickets"],
            [r"\bsearch\b.*\btickets?\b", r"\bfind\b.*\btickets?\b",
             r"\blook\s+for\b.*\btickets?\b"],
            ["search", "find", "look", "filter"],
        ),
    ),
    IntentType.GET_TICKET_DETAILS: (
        _pattern(
            ["ticket details", "ticket information", "ticket info"],
            [r"\bdetails?\b.*\btickets?\b", r"\binfo(?:rmation)?\b.*\btickets?\b",
             r"\btickets?\b.*\bdetails?\b"],
            ["details", "info", "information"],
        ),
        # A ticket reference right after "ticket", e.g. "ticket ticket-001"
        _pattern(
            regexes=[
                r"\btickets?\s+(?:for|about|of|with\s+id)\s+[a-z0-9]+(?:-[a-z0-9]+)+\b",
                r"\bticket\s+[a-z]+(?:-[a-z0-9]+)*-\d+\b",
            ],
            weight=0.9,
        ),
    ),
    IntentType.UPDATE_TICKET_STATUS: (
        _pattern(
            ["update ticket status", "change ticket status", "change status",
             "update status", "set status"],
            [r"\bupdate\b.*\bstatus\b", r"\bchange\b.*\bstatus\b", r"\bset\b.*\bstatus\b",
             r"\bmark\b.*\bticket\b.*\bas\b"],
            ["update", "change", "modify", "set", "mark"],
        ),
    ),
    IntentType.CREATE_TICKET: (
        _pattern(
            ["create ticket", "create a ticket", "new ticket", "open a ticket",
             "raise a ticket", "submit a ticket"],
            [r"\bcreate\b.*\bticket\b", r"\bnew\b.*\bticket\b", r"\braise\b.*\bticket\b"],
            ["create", "new", "raise", "submit"],
        ),
        _pattern(
            ["emergency access", "need access", "request access"],
            [r"\b(?:fire|medical|security|technical|hr|financial|management|logistics)"
             r"\s+emergency\b",
             r"\bemergency\b.*\brequest\b"],
            ["emergency", "request", "access", "urgent"],
            weight=0.9,
        ),
    ),
    IntentType.CLOSE_TICKET: (
        _pattern(
            ["close ticket", "close my ticket", "end ticket", "finish ticket",
             "complete ticket"],
            [r"\bclose\b.*\bticket\b", r"\bend\b.*\bticket\b", r"\bfinish\b.*\bticket\b"],
            ["close", "end", "finish", "complete"],
        ),
    ),
    IntentType.SHOW_ALL_TICKETS: (
        _pattern(
            ["all tickets", "every ticket", "show all tickets", "list all tickets",
             "system tickets"],
            [r"\ball\s+tickets\b", r"\bevery\s+ticket\b",
             r"\btickets\b.*\bin\s+the\s+system\b"],
            ["all", "every", "entire", "system"],
        ),
    ),
    IntentType.GET_SYSTEM_STATS: (
        _pattern(
            ["system stats", "system statistics", "ticket statistics", "ticket stats",
             "statistics"],
            [r"\bstatistics\b", r"\bstats\b", r"\bhow\s+many\s+tickets\b"],
            ["statistics", "stats", "metrics", "count", "summary"],
        ),
    ),
    IntentType.EXPORT_TICKETS: (
        _pattern(
            ["export tickets", "export data", "download tickets", "export ticket data"],
            [r"\bexport\b.*\btickets?\b", r"\bdownload\b.*\b(?:tickets?|data)\b", r"\bcsv\b"],
            ["export", "download", "csv", "excel"],
        ),
    ),
    IntentType.GET_HELP: (
        _pattern(
            ["help", "help me", "how to", "how do i", "assist"],
            [r"\bhelp\b", r"\bhow\s+(?:to|do\s+i)\b"],
            ["help", "assist", "guide", "support"],
        ),
    ),
    IntentType.SHOW_CAPABILITIES: (
        _pattern(
            ["what can you do", "capabilities", "what can i do", "features", "commands"],
            [r"\bwhat\s+can\s+(?:you|i)\s+do\b", r"\bcapabilit(?:y|ies)\b"],
            ["capabilities", "features", "commands", "abilities"],
        ),
    ),
})


def normalize_text(text: str) -> str:
    """Lower-case, replace punctuation with spaces and collapse whitespace."""
    lowered = _NON_WORD.sub(" ", (text or "").lower())
    return _WHITESPACE.sub(" ", lowered).strip()


def content_words(normalized: str) -> List[str]:
    return [w for w in normalized.split(" ") if w and w not in STOP_WORDS]


class IntentClassifier:
    """
    Classifies queries and answers role/intent permission questions.

    Stateless after construction; safe to share between requests.
    """

    def __init__(
        self,
        access_policy: Optional[AccessPolicy] = None,
        confidence_threshold: float = 0.7,
        patterns: Mapping[IntentType, Tuple[IntentPattern, ...]] = INTENT_PATTERNS,
    ):
        self._policy = access_policy or AccessPolicy()
        self._permissions = self._policy.permission_table()
        self._threshold = confidence_threshold
        self._patterns = patterns

    @property
    def confidence_threshold(self) -> float:
        return self._threshold

    @property
    def access_policy(self) -> AccessPolicy:
        return self._policy

    def score_intents(self, text: str) -> Dict[IntentType, float]:
        """Score every intent, in declaration order."""
        normalized = normalize_text(text)
        if not normalized:
            return {intent_type: 0.0 for intent_type in self._patterns}
        words = content_words(normalized)
        return {
            intent_type: max(p.score(normalized, words) for p in patterns)
            for intent_type, patterns in self._patterns.items()
        }

    def recognize_intent(self, text: str) -> Optional[Intent]:
        """
        Classify text into the best-scoring intent.

        Args:
            text: Raw query text

        Returns:
            Intent, or None when nothing scores at or above the threshold
        """
        best_type: Optional[IntentType] = None
        best_score = 0.0
        for intent_type, score in self.score_intents(text).items():
            if score > best_score:
                best_type, best_score = intent_type, score

        if best_type is None or best_score < self._threshold:
            logger.debug(
                "No intent recognized",
                extra={"best_score": round(best_score, 3), "query_length": len(text or "")},
            )
            return None

        return Intent(type=best_type, confidence=best_score, source_text=text)

    def rank_intents(self, text: str) -> List[Intent]:
        """All intents at or above the threshold, most confident first."""
        candidates = [
            Intent(type=intent_type, confidence=score, source_text=text)
            for intent_type, score in self.score_intents(text).items()
            if score >= self._threshold and score > 0.0
        ]
        return sorted(candidates, key=lambda intent: -intent.confidence)

    def is_intent_allowed(self, intent_type: IntentType, role: str) -> bool:
        """
        Check whether a role may invoke an intent.

        Unknown roles get the policy's most restrictive role.
        """
        if not role or not role.strip():
            return False
        allowed = self._permissions[self._policy.resolve_role(role)]
        return intent_type in allowed

    def supported_intents(self, role: str) -> List[IntentType]:
        """Intents available to a role, in declaration order."""
        allowed = self._permissions[self._policy.resolve_role(role)]
        return [intent_type for intent_type in IntentType if intent_type in allowed]
