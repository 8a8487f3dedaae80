"""
NLP Infrastructure Repositories
===============================

In-memory implementations of the collaborator interfaces.

Used for local runs, demos and tests; a deployment plugs in gateways backed
by the real ticket store and user directory.
"""

import itertools
import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from config import TERMINAL_STATUSES, TicketStatus
from core import ResourceNotFoundException
from nlp.application.interfaces import IRoleResolver, ITicketGateway
from nlp.domain import Ticket, TicketFilter
from shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class InMemoryTicketRepository(ITicketGateway):
    """
    Thread-safe in-memory ticket store.

    New tickets get sequential IDs such as ``TICKET-001``.
    """

    def __init__(self, tickets: Iterable[Ticket] = (), id_prefix: str = "TICKET"):
        self._lock = threading.Lock()
        self._tickets: Dict[str, Ticket] = {t.ticket_id.upper(): t for t in tickets}
        self._prefix = id_prefix
        self._sequence = itertools.count(len(self._tickets) + 1)

    def _next_id(self) -> str:
        while True:
            candidate = f"{self._prefix}-{next(self._sequence):03d}"
            if candidate not in self._tickets:
                return candidate

    def list_active_tickets(self, actor_id: str) -> List[Ticket]:
        """Active tickets owned by an actor."""
        return self.list_all_tickets(
            TicketFilter(user_id=actor_id, statuses=(TicketStatus.ACTIVE,))
        )

    def list_user_tickets(self, actor_id: str) -> List[Ticket]:
        """Every ticket owned by an actor."""
        return self.list_all_tickets(TicketFilter(user_id=actor_id))

    def list_all_tickets(self, filters: Optional[TicketFilter] = None) -> List[Ticket]:
        """Every ticket matching the filter, in ID order."""
        filters = filters or TicketFilter()
        with self._lock:
            tickets = list(self._tickets.values())
        return sorted(
            (t for t in tickets if filters.matches(t)),
            key=lambda t: t.ticket_id,
        )

    def get_ticket_details(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID (case-insensitive)."""
        with self._lock:
            return self._tickets.get((ticket_id or "").upper())

    def create_ticket(
        self,
        emergency_type: Optional[str],
        description: str,
        actor_id: str,
        emergency_contact: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> Ticket:
        """Create a new Active ticket."""
        with self._lock:
            ticket = Ticket(
                ticket_id=self._next_id(),
                description=description,
                status=TicketStatus.ACTIVE,
                user_id=actor_id,
                emergency_type=emergency_type,
                emergency_contact=emergency_contact,
                duration_minutes=duration_minutes,
            )
            self._tickets[ticket.ticket_id] = ticket

        logger.info(
            "Ticket created",
            extra={"ticket_id": ticket.ticket_id, "emergency_type": emergency_type},
        )
        return ticket

    def update_ticket_status(self, ticket_id: str, status: str) -> Ticket:
        """Move a ticket to a new status, stamping completion time for terminal ones."""
        key = (ticket_id or "").upper()
        with self._lock:
            ticket = self._tickets.get(key)
            if ticket is None:
                raise ResourceNotFoundException("Ticket", ticket_id)
            completed_at = ticket.completed_at
            if status in TERMINAL_STATUSES and completed_at is None:
                completed_at = datetime.now(timezone.utc)
            updated = replace(ticket, status=status, completed_at=completed_at)
            self._tickets[key] = updated

        logger.info(
            "Ticket status updated",
            extra={"ticket_id": updated.ticket_id, "status": status},
        )
        return updated


class StaticRoleResolver(IRoleResolver):
    """Resolves roles from a fixed actor -> role mapping."""

    def __init__(self, roles: Mapping[str, str]):
        self._roles = dict(roles)

    def role_of(self, actor_id: str) -> Optional[str]:
        return self._roles.get(actor_id)
