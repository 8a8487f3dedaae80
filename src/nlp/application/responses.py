"""
Response Generation
===================

Renders a QueryResult into the text shown to the actor.
"""

from typing import Callable, Mapping
from types import MappingProxyType

from nlp.domain import QueryResult, QueryResultType, Ticket
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

TRUNCATION_MARK = "..."
# Matches the lower bound on Settings.max_response_length
MIN_RESPONSE_LENGTH = 20


def render_operation(result: QueryResult) -> str:
    identifier = result.payload
    if isinstance(identifier, str) and identifier and identifier not in result.message:
        return f"{result.message} (Ticket ID: {identifier})"
    return result.message


def render_ticket_list(result: QueryResult) -> str:
    ticket_ids = list(result.payload or [])
    prefix = f"{result.qualifier} " if result.qualifier else ""
    if not ticket_ids:
        return f"No {prefix}tickets found."
    noun = "ticket" if len(ticket_ids) == 1 else "tickets"
    return f"Found {len(ticket_ids)} {prefix}{noun}: {', '.join(ticket_ids)}"


def render_ticket_details(result: QueryResult) -> str:
    ticket: Ticket = result.payload
    lines = [
        f"Ticket {ticket.ticket_id}",
        f"Status: {ticket.status}",
        f"Emergency type: {ticket.emergency_type or 'general'}",
        f"Description: {ticket.description}",
        f"Requested by: {ticket.user_id}",
        f"Created: {ticket.created_at:%Y-%m-%d %H:%M}",
    ]
    if ticket.duration_minutes:
        lines.append(f"Duration: {ticket.duration_minutes} minutes")
    if ticket.location:
        lines.append(f"Location: {ticket.location}")
    return "\n".join(lines)


def render_statistics(result: QueryResult) -> str:
    stats = dict(result.payload)
    scope = stats.pop("scope", "user")
    total = stats.pop("total_tickets", 0)
    breakdown = ", ".join(f"{count} {status}" for status, count in stats.items())
    return f"Ticket statistics for {scope}: {total} total ({breakdown})"


def render_help(result: QueryResult) -> str:
    return result.payload if isinstance(result.payload, str) else result.message


def render_export(result: QueryResult) -> str:
    return f"{result.message}. The CSV data is attached to this response."


def render_error(result: QueryResult) -> str:
    return result.message


TEMPLATES: Mapping[QueryResultType, Callable[[QueryResult], str]] = MappingProxyType({
    QueryResultType.OPERATION_RESULT: render_operation,
    QueryResultType.TICKET_LIST: render_ticket_list,
    QueryResultType.TICKET_DETAILS: render_ticket_details,
    QueryResultType.STATISTICS: render_statistics,
    QueryResultType.HELP: render_help,
    QueryResultType.EXPORT: render_export,
    QueryResultType.ERROR: render_error,
})


class ResponseGenerator:
    """Template-based rendering; never raises."""

    def __init__(self, max_response_length: int = 1000):
        self._max_length = max(max_response_length, MIN_RESPONSE_LENGTH)

    def generate_response(self, result: QueryResult) -> str:
        """
        Render a result for the actor.

        Falls back to the raw message for unknown result types or when a
        template cannot render the payload.
        """
        template = TEMPLATES.get(result.result_type)
        if template is None:
            return result.message
        try:
            text = template(result)
        except Exception:
            logger.warning(
                "Response template failed, falling back to message",
                extra={"result_type": str(result.result_type)},
                exc_info=True,
            )
            return result.message
        return self._truncate(text)

    def _truncate(self, text: str) -> str:
        if len(text) <= self._max_length:
            return text
        return text[: self._max_length - len(TRUNCATION_MARK)] + TRUNCATION_MARK
