"""
NLP Collaborator Interfaces
===========================

Abstract interfaces for the systems the query pipeline calls into.

Implementations own their persistence and concurrency; they signal an
unreachable backend with ``ServiceUnavailable`` and a missing record with
``ResourceNotFoundException``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from nlp.domain import Ticket, TicketFilter


class ITicketGateway(ABC):
    """Interface for emergency access ticket operations."""

    @abstractmethod
    def list_active_tickets(self, actor_id: str) -> List[Ticket]:
        """Active tickets owned by an actor."""

    @abstractmethod
    def list_user_tickets(self, actor_id: str) -> List[Ticket]:
        """Every ticket owned by an actor."""

    @abstractmethod
    def list_all_tickets(self, filters: Optional[TicketFilter] = None) -> List[Ticket]:
        """Every ticket in the system matching the filter."""

    @abstractmethod
    def get_ticket_details(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by ID, None when it does not exist."""

    @abstractmethod
    def create_ticket(
        self,
        emergency_type: Optional[str],
        description: str,
        actor_id: str,
        emergency_contact: Optional[str] = None,
        duration_minutes: Optional[int] = None,
    ) -> Ticket:
        """Create a new emergency access ticket."""

    @abstractmethod
    def update_ticket_status(self, ticket_id: str, status: str) -> Ticket:
        """Move a ticket to a new status."""

    def ticket_exists(self, ticket_id: str) -> bool:
        """Check whether a ticket exists."""
        return self.get_ticket_details(ticket_id) is not None


class IRoleResolver(ABC):
    """Interface for looking up an actor's role."""

    @abstractmethod
    def role_of(self, actor_id: str) -> Optional[str]:
        """Role name of an actor, None when unknown."""
