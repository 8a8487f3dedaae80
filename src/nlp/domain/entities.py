"""
NLP Domain Entities
===================

Domain entities for the natural-language query pipeline.

Everything created while a request flows through the pipeline is immutable
and lives for that request only.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class IntentType(str, Enum):
    """Operations a query can be classified as requesting."""

    SHOW_TICKETS = "show_tickets"
    SHOW_ACTIVE_TICKETS = "show_active_tickets"
    SHOW_COMPLETED_TICKETS = "show_completed_tickets"
    SEARCH_TICKETS = "search_tickets"
    GET_TICKET_DETAILS = "get_ticket_details"
    UPDATE_TICKET_STATUS = "update_ticket_status"
    CREATE_TICKET = "create_ticket"
    CLOSE_TICKET = "close_ticket"
    SHOW_ALL_TICKETS = "show_all_tickets"
    GET_SYSTEM_STATS = "get_system_stats"
    EXPORT_TICKETS = "export_tickets"
    GET_HELP = "get_help"
    SHOW_CAPABILITIES = "show_capabilities"

    @property
    def code(self) -> str:
        return self.value

    @property
    def description(self) -> str:
        return INTENT_DESCRIPTIONS[self]


INTENT_DESCRIPTIONS = MappingProxyType({
    IntentType.SHOW_TICKETS: "Show user's tickets",
    IntentType.SHOW_ACTIVE_TICKETS: "Show active tickets",
    IntentType.SHOW_COMPLETED_TICKETS: "Show completed tickets",
    IntentType.SEARCH_TICKETS: "Search tickets",
    IntentType.GET_TICKET_DETAILS: "Get ticket details",
    IntentType.UPDATE_TICKET_STATUS: "Update ticket status",
    IntentType.CREATE_TICKET: "Create new ticket",
    IntentType.CLOSE_TICKET: "Close ticket",
    IntentType.SHOW_ALL_TICKETS: "Show all tickets (admin)",
    IntentType.GET_SYSTEM_STATS: "Get system statistics",
    IntentType.EXPORT_TICKETS: "Export ticket data",
    IntentType.GET_HELP: "Get help",
    IntentType.SHOW_CAPABILITIES: "Show system capabilities",
})


class EntityType(str, Enum):
    """Kinds of structured value the extractor can find in a query."""

    TICKET_ID = "TICKET_ID"
    STATUS = "STATUS"
    DATE = "DATE"
    EMERGENCY_TYPE = "EMERGENCY_TYPE"
    DESCRIPTION = "DESCRIPTION"
    LOCATION = "LOCATION"
    PHONE = "PHONE"
    DURATION = "DURATION"


@dataclass(frozen=True)
class Intent:
    """
    A classified query.

    ``confidence`` is the winning pattern score, ``source_text`` the raw
    query the classification was made from.
    """
    type: IntentType
    confidence: float
    source_text: str

    def __post_init__(self):
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("Confidence must be between 0 and 1")


@dataclass(frozen=True)
class Entity:
    """
    A typed, positioned substring of the query text.

    ``value`` is exactly ``source_text[span_start:span_end]``; ``normalized``
    is its canonical form (upper-cased ticket ID, ISO date, minutes...).
    """
    type: EntityType
    value: str
    span_start: int
    span_end: int
    normalized: str = ""

    def __post_init__(self):
        if not 0 <= self.span_start <= self.span_end:
            raise ValueError("Entity span must satisfy 0 <= start <= end")

    def overlaps(self, other: "Entity") -> bool:
        return self.span_start < other.span_end and other.span_start < self.span_end


@dataclass(frozen=True)
class ExtractedEntities:
    """
    Read-only mapping from EntityType to the entities found, in order of
    appearance. Every EntityType is present; no match means an empty tuple.
    """
    by_type: Mapping[EntityType, Tuple[Entity, ...]]

    @classmethod
    def of(cls, entities: Iterable[Entity]) -> "ExtractedEntities":
        grouped: Dict[EntityType, List[Entity]] = {t: [] for t in EntityType}
        for entity in entities:
            grouped[entity.type].append(entity)
        return cls(MappingProxyType({
            entity_type: tuple(sorted(found, key=lambda e: (e.span_start, e.span_end)))
            for entity_type, found in grouped.items()
        }))

    @classmethod
    def empty(cls) -> "ExtractedEntities":
        return cls.of(())

    def __getitem__(self, entity_type: EntityType) -> Tuple[Entity, ...]:
        return self.by_type.get(entity_type, ())

    def has(self, entity_type: EntityType) -> bool:
        return bool(self[entity_type])

    def first(self, entity_type: EntityType) -> Optional[Entity]:
        found = self[entity_type]
        return found[0] if found else None

    def first_normalized(self, entity_type: EntityType) -> Optional[str]:
        entity = self.first(entity_type)
        return entity.normalized if entity else None

    @property
    def is_empty(self) -> bool:
        return not any(self.by_type.values())

    def summary(self) -> Dict[str, List[str]]:
        """Normalized values per non-empty type, for logging and debugging."""
        return {
            entity_type.value: [e.normalized for e in found]
            for entity_type, found in self.by_type.items() if found
        }


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of entity validation; every violated rule is listed."""
    errors: Tuple[str, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    @classmethod
    def from_errors(cls, errors: Iterable[str]) -> "ValidationResult":
        return cls(tuple(errors))


class QueryResultType(str, Enum):
    """Shape of a dispatcher result, selects the response template."""

    OPERATION_RESULT = "OPERATION_RESULT"
    TICKET_LIST = "TICKET_LIST"
    TICKET_DETAILS = "TICKET_DETAILS"
    STATISTICS = "STATISTICS"
    HELP = "HELP"
    EXPORT = "EXPORT"
    ERROR = "ERROR"


@dataclass(frozen=True)
class QueryResult:
    """
    Result of dispatching one intent.

    A successful result always carries a message and a non-error type;
    a failed result is always of type ERROR.
    """
    success: bool
    message: str
    result_type: QueryResultType
    payload: Any = None
    record_count: int = 0
    qualifier: str = ""

    def __post_init__(self):
        if self.success:
            if not self.message:
                raise ValueError("A successful result requires a message")
            if self.result_type == QueryResultType.ERROR:
                raise ValueError("A successful result cannot be of type ERROR")
        elif self.result_type != QueryResultType.ERROR:
            raise ValueError("A failed result must be of type ERROR")

    @classmethod
    def failure(cls, message: str) -> "QueryResult":
        return cls(False, message, QueryResultType.ERROR)

    @classmethod
    def operation(cls, message: str, identifier: Optional[str] = None) -> "QueryResult":
        return cls(True, message, QueryResultType.OPERATION_RESULT, identifier,
                   1 if identifier else 0)

    @classmethod
    def ticket_list(cls, ticket_ids: List[str], qualifier: str = "") -> "QueryResult":
        return cls(
            True,
            f"Retrieved {len(ticket_ids)} tickets",
            QueryResultType.TICKET_LIST,
            list(ticket_ids),
            len(ticket_ids),
            qualifier,
        )


@dataclass(frozen=True)
class Ticket:
    """
    Emergency access ticket as exposed by the ticket gateway.

    The pipeline only reads tickets; lifecycle changes go through the
    gateway.
    """
    ticket_id: str
    description: str
    status: str
    user_id: str
    emergency_type: Optional[str] = None
    emergency_contact: Optional[str] = None
    duration_minutes: Optional[int] = None
    location: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def is_owned_by(self, actor_id: str) -> bool:
        return self.user_id == actor_id


@dataclass(frozen=True)
class TicketFilter:
    """
    Search criteria handed to ``list_all_tickets``.

    Unset fields do not constrain the result.
    """
    user_id: Optional[str] = None
    statuses: Tuple[str, ...] = ()
    emergency_type: Optional[str] = None
    ticket_id: Optional[str] = None
    created_on: Optional[date] = None
    location: Optional[str] = None

    def matches(self, ticket: Ticket) -> bool:
        if self.user_id and ticket.user_id != self.user_id:
            return False
        if self.statuses and ticket.status not in self.statuses:
            return False
        if self.emergency_type and (ticket.emergency_type or "").lower() != self.emergency_type:
            return False
        if self.ticket_id and ticket.ticket_id.upper() != self.ticket_id.upper():
            return False
        if self.created_on and ticket.created_at.date() != self.created_on:
            return False
        if self.location and self.location.lower() not in (ticket.location or "").lower():
            return False
        return True
