import logging
from datetime import datetime, timezone

import pytest

from config import Settings, TicketStatus
from nlp.bootstrap import create_nlp_service
from nlp.domain import AccessPolicy, Ticket
from nlp.infrastructure import InMemoryTicketRepository, StaticRoleResolver

CREATED = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def make_ticket(ticket_id, status, user_id="alice", **fields):
    fields.setdefault("description", "Server room access")
    fields.setdefault("created_at", CREATED)
    return Ticket(ticket_id=ticket_id, status=status, user_id=user_id, **fields)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handlers and level installed by create_nlp_service."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings():
    return Settings(environment="test", _env_file=None)


@pytest.fixture
def tickets():
    return [
        make_ticket("TICKET-001", TicketStatus.ACTIVE, emergency_type="fire"),
        make_ticket("TICKET-002", TicketStatus.COMPLETED, emergency_type="medical"),
        make_ticket("TICKET-003", TicketStatus.PENDING, "bob", emergency_type="security"),
        make_ticket("TICKET-004", TicketStatus.CLOSED, "bob"),
        make_ticket("TICKET-005", TicketStatus.ACTIVE, "bob", emergency_type="technical",
                    location="Building 5"),
    ]


@pytest.fixture
def repository(tickets):
    return InMemoryTicketRepository(tickets)


@pytest.fixture
def roles():
    return StaticRoleResolver({
        "alice": "USER",
        "bob": "user",
        "root": "ADMIN",
        "visitor": "GUEST",
    })


@pytest.fixture
def service(repository, roles, settings):
    return create_nlp_service(repository, roles, settings, AccessPolicy())
