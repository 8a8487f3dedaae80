"""
NLP Domain Layer
================

Domain layer for the query pipeline.

Contains:
- Entities: Intent, Entity, ExtractedEntities, ValidationResult,
  QueryResult, Ticket, TicketFilter
- Value Objects: AccessPolicy (role to intent table)

This layer has no dependencies on infrastructure - pure Python business logic.
"""

from nlp.domain.entities import (
    IntentType,
    EntityType,
    Intent,
    Entity,
    ExtractedEntities,
    ValidationResult,
    QueryResultType,
    QueryResult,
    Ticket,
    TicketFilter,
)
from nlp.domain.value_objects import AccessPolicy

__all__ = [
    # Entities
    "IntentType",
    "EntityType",
    "Intent",
    "Entity",
    "ExtractedEntities",
    "ValidationResult",
    "QueryResultType",
    "QueryResult",
    "Ticket",
    "TicketFilter",
    # Value Objects
    "AccessPolicy",
]
