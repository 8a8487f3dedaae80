"""
Query Dispatcher
================

Routes a recognized, authorized and validated intent to its ticket
operation.

The dispatch table is a read-only ``IntentType -> handler`` mapping built at
import time. Handlers report expected domain conditions (missing ticket,
foreign ticket, no-op status change) as failed QueryResults; collaborator
exceptions are caught here and never leave the dispatcher.
"""

import csv
import io
from collections import Counter
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Callable, List, Mapping, Optional, Tuple
from types import MappingProxyType

from config import STATUS_ALIASES, TERMINAL_STATUSES, VALID_STATUSES, TicketStatus
from core import ApplicationException
from nlp.application.interfaces import ITicketGateway
from nlp.domain import (
    EntityType, ExtractedEntities, Intent, IntentType, QueryResult, QueryResultType,
    Ticket, TicketFilter,
)
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DESCRIPTION = "Emergency assistance request"

EXPORT_COLUMNS = (
    "ticket_id", "status", "emergency_type", "description", "user_id",
    "duration_minutes", "created_at",
)


@dataclass(frozen=True)
class DispatchContext:
    """Everything a handler may use for one dispatched intent."""
    gateway: ITicketGateway
    entities: ExtractedEntities
    actor_id: str
    is_admin: bool
    today: date


Handler = Callable[[DispatchContext], QueryResult]


# ========== Helpers ==========

def resolve_date(value: Optional[str], today: date) -> Optional[date]:
    """Turn a normalized DATE entity into a calendar date."""
    if not value:
        return None
    relative = {"today": 0, "yesterday": -1, "tomorrow": 1}
    if value in relative:
        return today + timedelta(days=relative[value])
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def canonical_statuses(entities: ExtractedEntities) -> Tuple[str, ...]:
    statuses: List[str] = []
    for entity in entities[EntityType.STATUS]:
        status = STATUS_ALIASES.get(entity.normalized)
        if status and status not in statuses:
            statuses.append(status)
    return tuple(statuses)


def build_filter(ctx: DispatchContext, default_statuses: Tuple[str, ...] = ()) -> TicketFilter:
    entities = ctx.entities
    location = entities.first_normalized(EntityType.LOCATION)
    return TicketFilter(
        statuses=canonical_statuses(entities) or default_statuses,
        emergency_type=entities.first_normalized(EntityType.EMERGENCY_TYPE),
        ticket_id=entities.first_normalized(EntityType.TICKET_ID),
        created_on=resolve_date(entities.first_normalized(EntityType.DATE), ctx.today),
        location=location.lower() if location else None,
    )


def scoped_tickets(ctx: DispatchContext, filters: TicketFilter) -> List[Ticket]:
    """All matching tickets for admins, the actor's own otherwise."""
    if ctx.is_admin:
        return ctx.gateway.list_all_tickets(filters)
    return [t for t in ctx.gateway.list_user_tickets(ctx.actor_id) if filters.matches(t)]


def list_result(
    tickets: List[Ticket],
    filters: Optional[TicketFilter] = None,
    qualifier: Optional[str] = None,
) -> QueryResult:
    if qualifier is None:
        qualifier = ""
        if filters is not None and len(filters.statuses) == 1:
            qualifier = filters.statuses[0].lower()
        else:
            statuses = {t.status for t in tickets}
            if len(statuses) == 1:
                qualifier = statuses.pop().lower()
    return QueryResult.ticket_list([t.ticket_id for t in tickets], qualifier)


def _single_ticket_id(ctx: DispatchContext) -> Optional[str]:
    return ctx.entities.first_normalized(EntityType.TICKET_ID)


# ========== Handlers ==========

def show_tickets(ctx: DispatchContext) -> QueryResult:
    filters = build_filter(ctx)
    tickets = [t for t in ctx.gateway.list_user_tickets(ctx.actor_id) if filters.matches(t)]
    return list_result(tickets, filters)


def show_active_tickets(ctx: DispatchContext) -> QueryResult:
    if ctx.is_admin:
        tickets = ctx.gateway.list_all_tickets(TicketFilter(statuses=(TicketStatus.ACTIVE,)))
    else:
        tickets = ctx.gateway.list_active_tickets(ctx.actor_id)
    return list_result(tickets, qualifier="active")


def show_completed_tickets(ctx: DispatchContext) -> QueryResult:
    filters = TicketFilter(statuses=(TicketStatus.COMPLETED, TicketStatus.CLOSED))
    return list_result(scoped_tickets(ctx, filters), qualifier="completed")


def show_all_tickets(ctx: DispatchContext) -> QueryResult:
    filters = build_filter(ctx)
    return list_result(scoped_tickets(ctx, filters), filters)


def search_tickets(ctx: DispatchContext) -> QueryResult:
    filters = build_filter(ctx)
    return list_result(scoped_tickets(ctx, filters), filters)


def get_ticket_details(ctx: DispatchContext) -> QueryResult:
    ticket_id = _single_ticket_id(ctx)
    ticket = ctx.gateway.get_ticket_details(ticket_id)
    if ticket is None:
        return QueryResult.failure(f"Ticket not found: {ticket_id}")
    if not ctx.is_admin and not ticket.is_owned_by(ctx.actor_id):
        return QueryResult.failure("You can only view your own tickets.")
    return QueryResult(
        success=True,
        message=f"Details for ticket {ticket.ticket_id}",
        result_type=QueryResultType.TICKET_DETAILS,
        payload=ticket,
        record_count=1,
    )


def create_ticket(ctx: DispatchContext) -> QueryResult:
    entities = ctx.entities
    emergency_type = entities.first_normalized(EntityType.EMERGENCY_TYPE)
    description = entities.first_normalized(EntityType.DESCRIPTION) or DEFAULT_DESCRIPTION
    duration = entities.first_normalized(EntityType.DURATION)

    ticket = ctx.gateway.create_ticket(
        emergency_type,
        description,
        ctx.actor_id,
        emergency_contact=entities.first_normalized(EntityType.PHONE),
        duration_minutes=int(duration) if duration else None,
    )

    if emergency_type:
        message = (
            f"Emergency ticket {ticket.ticket_id} has been created for "
            f"{emergency_type} emergency: {description}"
        )
    else:
        message = f"Emergency ticket {ticket.ticket_id} has been created: {description}"
    return QueryResult.operation(message, ticket.ticket_id)


def _owned_ticket(ctx: DispatchContext, action: str) -> Tuple[Optional[Ticket], Optional[QueryResult]]:
    ticket_id = _single_ticket_id(ctx)
    ticket = ctx.gateway.get_ticket_details(ticket_id)
    if ticket is None:
        return None, QueryResult.failure(f"Ticket not found: {ticket_id}")
    if not ctx.is_admin and not ticket.is_owned_by(ctx.actor_id):
        return None, QueryResult.failure(f"You can only {action} your own tickets.")
    return ticket, None


def update_ticket_status(ctx: DispatchContext) -> QueryResult:
    ticket, failure = _owned_ticket(ctx, "update")
    if failure:
        return failure

    new_status = canonical_statuses(ctx.entities)[0]
    if ticket.status == new_status:
        return QueryResult.failure(f"Ticket {ticket.ticket_id} is already {new_status.lower()}")

    updated = ctx.gateway.update_ticket_status(ticket.ticket_id, new_status)
    return QueryResult.operation(
        f"Ticket {updated.ticket_id} status updated to {updated.status}", updated.ticket_id
    )


def close_ticket(ctx: DispatchContext) -> QueryResult:
    ticket, failure = _owned_ticket(ctx, "close")
    if failure:
        return failure

    if ticket.status in TERMINAL_STATUSES:
        return QueryResult.failure(
            f"Ticket {ticket.ticket_id} is already {ticket.status.lower()}"
        )

    closed = ctx.gateway.update_ticket_status(ticket.ticket_id, TicketStatus.COMPLETED)
    return QueryResult.operation(f"Ticket {closed.ticket_id} has been closed", closed.ticket_id)


def get_system_stats(ctx: DispatchContext) -> QueryResult:
    if ctx.is_admin:
        scope, tickets = "system", ctx.gateway.list_all_tickets(TicketFilter())
    else:
        scope, tickets = "user", ctx.gateway.list_user_tickets(ctx.actor_id)

    counts = Counter(t.status for t in tickets)
    stats = {"scope": scope, "total_tickets": len(tickets)}
    stats.update({status.lower(): counts.get(status, 0) for status in VALID_STATUSES})

    return QueryResult(
        success=True,
        message=f"Ticket statistics ({scope})",
        result_type=QueryResultType.STATISTICS,
        payload=stats,
        record_count=len(tickets),
    )


def export_tickets(ctx: DispatchContext) -> QueryResult:
    tickets = scoped_tickets(ctx, build_filter(ctx))

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    for t in tickets:
        writer.writerow([
            t.ticket_id, t.status, t.emergency_type or "", t.description, t.user_id,
            t.duration_minutes if t.duration_minutes is not None else "",
            t.created_at.isoformat(),
        ])

    return QueryResult(
        success=True,
        message=f"Exported {len(tickets)} tickets",
        result_type=QueryResultType.EXPORT,
        payload=buffer.getvalue(),
        record_count=len(tickets),
    )


HELP_TEXT = (
    "You can ask me to:\n"
    "- show your tickets, or only the active or completed ones\n"
    "- search tickets by status, emergency type, date or location\n"
    "- show the details of a ticket, e.g. 'show ticket TICKET-001'\n"
    "- create a ticket, e.g. 'create a fire emergency ticket for building collapse'\n"
    "- update or close one of your tickets"
)

ADMIN_HELP_TEXT = (
    "As an administrator you can also:\n"
    "- show all tickets in the system\n"
    "- get system statistics\n"
    "- export ticket data"
)


def get_help(ctx: DispatchContext) -> QueryResult:
    text = HELP_TEXT + ("\n" + ADMIN_HELP_TEXT if ctx.is_admin else "")
    return QueryResult(True, "Help", QueryResultType.HELP, text)


ADMIN_ONLY_INTENTS = frozenset({
    IntentType.SHOW_ALL_TICKETS, IntentType.GET_SYSTEM_STATS, IntentType.EXPORT_TICKETS,
})


def show_capabilities(ctx: DispatchContext) -> QueryResult:
    intents = [
        intent_type for intent_type in IntentType
        if ctx.is_admin or intent_type not in ADMIN_ONLY_INTENTS
    ]
    text = "I can help you with:\n" + "\n".join(f"- {i.description}" for i in intents)
    return QueryResult(True, "Capabilities", QueryResultType.HELP, text, len(intents))

DISPATCH_TABLE: Mapping[IntentType, Handler] = MappingProxyType({
    IntentType.SHOW_TICKETS: show_tickets,
    IntentType.SHOW_ACTIVE_TICKETS: show_active_tickets,
    IntentType.SHOW_COMPLETED_TICKETS: show_completed_tickets,
    IntentType.SEARCH_TICKETS: search_tickets,
    IntentType.GET_TICKET_DETAILS: get_ticket_details,
    IntentType.UPDATE_TICKET_STATUS: update_ticket_status,
    IntentType.CREATE_TICKET: create_ticket,
    IntentType.CLOSE_TICKET: close_ticket,
    IntentType.SHOW_ALL_TICKETS: show_all_tickets,
    IntentType.GET_SYSTEM_STATS: get_system_stats,
    IntentType.EXPORT_TICKETS: export_tickets,
    IntentType.GET_HELP: get_help,
    IntentType.SHOW_CAPABILITIES: show_capabilities,
})


class QueryDispatcher:
    """
    Executes intents against the ticket gateway.

    ``is_admin`` widens the scope of list operations and lifts ownership
    checks; it is not an authorization decision.
    """

    def __init__(
        self,
        ticket_gateway: ITicketGateway,
        handlers: Mapping[IntentType, Handler] = DISPATCH_TABLE,
        clock: Callable[[], date] = date.today,
    ):
        self._gateway = ticket_gateway
        self._handlers = handlers
        self._clock = clock

    def handler_for(self, intent_type: IntentType) -> Optional[Handler]:
        return self._handlers.get(intent_type)

    def process_query(
        self,
        intent: Intent,
        entities: ExtractedEntities,
        actor_id: str,
        is_admin: bool,
    ) -> QueryResult:
        """
        Run the handler for an intent.

        Args:
            intent: Recognized intent
            entities: Validated entities
            actor_id: Actor the query runs for
            is_admin: Whether to use administrator breadth

        Returns:
            QueryResult; collaborator failures become failed results
        """
        handler = self.handler_for(intent.type)
        if handler is None:
            return QueryResult.failure(f"Intent {intent.type.value} is not supported")

        ctx = DispatchContext(
            gateway=self._gateway,
            entities=entities,
            actor_id=actor_id,
            is_admin=is_admin,
            today=self._clock(),
        )
        try:
            result = handler(ctx)
        except ApplicationException as e:
            logger.warning(
                f"Operation failed: {e.message}",
                extra={"intent": intent.type.value, "details": e.details},
            )
            return QueryResult.failure(e.message)
        except Exception as e:
            logger.exception("Unexpected error while executing query",
                             extra={"intent": intent.type.value})
            return QueryResult.failure(f"Error while executing query: {e}")

        logger.debug(
            "Intent dispatched",
            extra={"intent": intent.type.value, "success": result.success,
                   "record_count": result.record_count},
        )
        return result
