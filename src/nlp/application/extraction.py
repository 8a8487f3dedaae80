"""
Entity Extraction and Validation
================================

Pattern-based extraction of typed entities from query text, and rule-based
validation of those entities against the recognized intent.

Extraction never looks at the intent and never raises on odd input; it
simply finds nothing. Validation reports every violated rule, not just the
first one.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, List, Mapping, Optional, Pattern, Sequence, Tuple
from types import MappingProxyType

from config import STATUS_ALIASES, VALID_EMERGENCY_TYPES
from nlp.domain import Entity, EntityType, ExtractedEntities, Intent, IntentType, ValidationResult
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

WELL_FORMED_TICKET_ID = re.compile(r"^[A-Z]{2,}(?:-[A-Z]{2,})*-\d+$")

RELATIVE_DATES = ("today", "yesterday", "tomorrow")

_EMERGENCY_WORDS = "|".join(t for t in VALID_EMERGENCY_TYPES)

_DESCRIPTION_END = (
    r"(?=\s+(?:with\s+(?:emergency\s+)?contact|contact|call|phone|lasting"
    r"|for\s+\d+\s*(?:minutes?|mins?|hours?|hrs?|h)\b)|\s*[.;!?](?:\s|$)|\s*$)"
)


def _normalize_date(value: str) -> str:
    lowered = value.lower()
    if lowered in RELATIVE_DATES:
        return lowered
    for fmt in ("%Y-%m-%d", "%m/%d/%Y"):
        try:
            return datetime.strptime(value, fmt).date().isoformat()
        except ValueError:
            continue
    return value


def _normalize_duration(value: str) -> str:
    match = re.match(r"(\d+)\s*([a-z]+)", value.lower())
    if not match:
        return value
    amount, unit = int(match.group(1)), match.group(2)
    minutes = amount * 60 if unit.startswith("h") else amount
    return str(minutes)


def _normalize_phone(value: str) -> str:
    digits = re.sub(r"\D", "", value)
    return ("+" + digits) if value.strip().startswith("+") else digits


def _normalize_status(value: str) -> str:
    return re.sub(r"\s+", " ", value.strip().lower())


@dataclass(frozen=True)
class EntityMatcher:
    """
    One regular expression producing entities of a single type.

    The ``value`` group, when present, is the entity; otherwise the whole
    match is.
    """
    entity_type: EntityType
    regex: Pattern
    normalize: Callable[[str], str] = str.strip

    def find(self, text: str) -> Iterable[Entity]:
        for match in self.regex.finditer(text):
            group = "value" if "value" in self.regex.groupindex else 0
            start, end = match.span(group)
            if start < 0 or start == end:
                continue
            value = text[start:end]
            yield Entity(self.entity_type, value, start, end, self.normalize(value))


def _matcher(entity_type: EntityType, regex: str, normalize=str.strip, flags=re.IGNORECASE):
    return EntityMatcher(entity_type, re.compile(regex, flags), normalize)


ENTITY_MATCHERS: Tuple[EntityMatcher, ...] = (
    # Ticket IDs: canonical forms, then an ID-looking hyphenated token named as a ticket
    _matcher(EntityType.TICKET_ID, r"\b[A-Z]{2,}(?:-[A-Z]{2,})*-\d+\b",
             lambda v: v.upper(), flags=0),
    _matcher(EntityType.TICKET_ID, r"\bticket-\d+\b", lambda v: v.upper()),
    _matcher(
        EntityType.TICKET_ID,
        r"\btickets?\s+(?:(?:id|number|no\.?)\s*[:#]?\s*|#\s*)?"
        r"(?:(?:for|about|of|with\s+id)\s+)?"
        r"(?P<value>(?=[a-z0-9-]*(?:\d|ticket|\bid\b))[a-z0-9]+(?:-[a-z0-9]+)+)\b",
        lambda v: v.upper(),
    ),

    _matcher(
        EntityType.STATUS,
        r"\b(?:open|active|pending|in\s+progress|completed|done|closed|rejected|revoked)\b",
        _normalize_status,
    ),
    _matcher(EntityType.STATUS, r"\bstatus\s*(?:to\s+|=\s*|:\s*)(?P<value>[a-z]+)\b",
             _normalize_status),

    _matcher(EntityType.DATE, r"\b\d{1,2}/\d{1,2}/\d{4}\b", _normalize_date),
    _matcher(EntityType.DATE, r"\b\d{4}-\d{2}-\d{2}\b", _normalize_date),
    _matcher(EntityType.DATE, r"\b(?:today|yesterday|tomorrow)\b", _normalize_date),

    _matcher(EntityType.EMERGENCY_TYPE, rf"\b(?P<value>{_EMERGENCY_WORDS})\s+emergenc(?:y|ies)\b",
             lambda v: v.lower()),
    _matcher(EntityType.EMERGENCY_TYPE,
             r"\bemergency\s+type\s*(?:is\s+|:\s*|=\s*)?(?P<value>[a-z]+)\b",
             lambda v: v.lower()),

    _matcher(
        EntityType.DESCRIPTION,
        r"\b(?:ticket|request|emergency)\s+(?:for|about|regarding)\s+(?P<value>.+?)"
        + _DESCRIPTION_END,
    ),
    _matcher(
        EntityType.DESCRIPTION,
        r"\b(?:description|issue|problem|reason)\s*:\s*(?P<value>.+?)" + _DESCRIPTION_END,
    ),
    _matcher(
        EntityType.DESCRIPTION,
        r"\breport(?:ing)?\s+(?:an?\s+|the\s+)?(?P<value>.+?)" + _DESCRIPTION_END,
    ),

    _matcher(
        EntityType.LOCATION,
        r"\b(?:at|in|near)\s+(?:the\s+)?(?P<value>(?:building|floor|room|block|site|zone"
        r"|warehouse|plant|wing|sector)\s*[a-z0-9]+(?:-[a-z0-9]+)*)\b",
    ),

    _matcher(
        EntityType.PHONE,
        r"\b(?:contact|phone|call|reach\s+me\s+(?:at|on))\s*(?:number\s*)?:?\s*"
        r"(?P<value>\+?\d[\d\s().-]{5,}\d)",
        _normalize_phone,
    ),

    _matcher(EntityType.DURATION, r"\bfor\s+(?P<value>\d{1,5}\s*(?:minutes?|mins?|hours?|hrs?|h))\b",
             _normalize_duration),
)


class EntityExtractor:
    """
    Finds entities of every type in a query.

    Pure: the same text always produces an equal ExtractedEntities, and
    nothing depends on the clock or on previous calls.
    """

    def __init__(self, matchers: Sequence[EntityMatcher] = ENTITY_MATCHERS):
        self._matchers = tuple(matchers)

    def extract_entities(self, text: str) -> ExtractedEntities:
        """
        Extract all entities from raw query text.

        Spans index into ``text`` as given. Within one type, a match that
        overlaps an earlier kept match is dropped.
        """
        if not text:
            return ExtractedEntities.empty()

        kept: List[Entity] = []
        for matcher in self._matchers:
            for entity in matcher.find(text):
                if any(other.type == entity.type and other.overlaps(entity) for other in kept):
                    continue
                kept.append(entity)

        entities = ExtractedEntities.of(kept)
        logger.debug("Entities extracted", extra={"entities": entities.summary()})
        return entities


# ========== Validation ==========

Rule = Callable[[ExtractedEntities], List[str]]


def _well_formed_ticket_ids(entities: ExtractedEntities) -> List[str]:
    return [
        f"Invalid ticket ID format: {e.value}"
        for e in entities[EntityType.TICKET_ID]
        if not WELL_FORMED_TICKET_ID.match(e.value.upper())
    ]


def _known_statuses(entities: ExtractedEntities) -> List[str]:
    return [
        f"Invalid status: {e.value}"
        for e in entities[EntityType.STATUS]
        if e.normalized not in STATUS_ALIASES
    ]


def _real_dates(entities: ExtractedEntities) -> List[str]:
    errors = []
    for e in entities[EntityType.DATE]:
        if e.normalized in RELATIVE_DATES:
            continue
        try:
            datetime.strptime(e.normalized, "%Y-%m-%d")
        except ValueError:
            errors.append(f"Invalid date format: {e.value}")
    return errors


def _known_emergency_types(entities: ExtractedEntities) -> List[str]:
    return [
        f"Invalid emergency type: {e.value}"
        for e in entities[EntityType.EMERGENCY_TYPE]
        if e.normalized not in VALID_EMERGENCY_TYPES
    ]


def _exactly_one(entity_type: EntityType, label: str) -> Rule:
    def rule(entities: ExtractedEntities) -> List[str]:
        count = len(entities[entity_type])
        if count == 0:
            return [f"Missing {label}"]
        if count > 1:
            return [f"Multiple {label}s provided"]
        return []
    return rule


def _at_most_one(entity_type: EntityType, label: str) -> Rule:
    def rule(entities: ExtractedEntities) -> List[str]:
        if len(entities[entity_type]) > 1:
            return [f"Multiple {label}s provided"]
        return []
    return rule


SEARCH_CRITERIA = (
    EntityType.TICKET_ID, EntityType.STATUS, EntityType.EMERGENCY_TYPE,
    EntityType.DATE, EntityType.LOCATION,
)


def _has_search_criterion(entities: ExtractedEntities) -> List[str]:
    if any(entities.has(t) for t in SEARCH_CRITERIA):
        return []
    return ["No search criteria provided"]


# Intents that refer to existing tickets; only these have their ticket IDs checked
TICKET_REFERENCE_INTENTS = frozenset({
    IntentType.GET_TICKET_DETAILS,
    IntentType.CLOSE_TICKET,
    IntentType.UPDATE_TICKET_STATUS,
    IntentType.SEARCH_TICKETS,
})


INTENT_RULES: Mapping[IntentType, Tuple[Rule, ...]] = MappingProxyType({
    IntentType.GET_TICKET_DETAILS: (_exactly_one(EntityType.TICKET_ID, "ticket ID"),),
    IntentType.CLOSE_TICKET: (_exactly_one(EntityType.TICKET_ID, "ticket ID"),),
    IntentType.UPDATE_TICKET_STATUS: (
        _exactly_one(EntityType.TICKET_ID, "ticket ID"),
        _exactly_one(EntityType.STATUS, "status"),
    ),
    IntentType.CREATE_TICKET: (_at_most_one(EntityType.EMERGENCY_TYPE, "emergency type"),),
    IntentType.SEARCH_TICKETS: (_has_search_criterion,),
})


class EntityValidator:
    """
    Validates extracted entities for a recognized intent.

    ``ticket_lookup`` is an optional callable answering whether a ticket
    exists; when given, well-formed ticket IDs must refer to real tickets.
    Lookup failures propagate to the caller.
    """

    def __init__(
        self,
        max_description_length: int = 500,
        max_duration_minutes: int = 1440,
        ticket_lookup: Optional[Callable[[str], bool]] = None,
    ):
        self._max_description_length = max_description_length
        self._max_duration_minutes = max_duration_minutes
        self._ticket_lookup = ticket_lookup
        self._general_rules: Tuple[Rule, ...] = (
            _known_statuses,
            _real_dates,
            _known_emergency_types,
            self._durations_in_range,
            self._descriptions_fit,
        )

    def _durations_in_range(self, entities: ExtractedEntities) -> List[str]:
        return [
            f"Invalid duration: {e.value}"
            for e in entities[EntityType.DURATION]
            if not (e.normalized.isdigit()
                    and 1 <= int(e.normalized) <= self._max_duration_minutes)
        ]

    def _descriptions_fit(self, entities: ExtractedEntities) -> List[str]:
        return [
            f"Description exceeds {self._max_description_length} characters"
            for e in entities[EntityType.DESCRIPTION]
            if len(e.normalized) > self._max_description_length
        ]

    def _existing_tickets(self, entities: ExtractedEntities) -> List[str]:
        errors = []
        for e in entities[EntityType.TICKET_ID]:
            if WELL_FORMED_TICKET_ID.match(e.normalized) and not self._ticket_lookup(e.normalized):
                errors.append(f"Unknown ticket ID: {e.value}")
        return errors

    def validate_entities(self, entities: ExtractedEntities, intent: Intent) -> ValidationResult:
        """
        Validate entities for an intent.

        Args:
            entities: Output of EntityExtractor.extract_entities
            intent: The recognized intent

        Returns:
            ValidationResult listing every violated rule in rule order
        """
        rules = self._general_rules + INTENT_RULES.get(intent.type, ())
        if intent.type in TICKET_REFERENCE_INTENTS:
            rules = (_well_formed_ticket_ids,) + rules
            if self._ticket_lookup is not None:
                rules += (self._existing_tickets,)

        errors: List[str] = []
        for rule in rules:
            errors.extend(rule(entities))

        if errors:
            logger.info(
                "Entity validation failed",
                extra={"intent": intent.type.value, "errors": errors},
            )
        return ValidationResult.from_errors(errors)
