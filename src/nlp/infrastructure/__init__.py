"""
NLP Infrastructure Layer
========================

Concrete collaborators and configuration loading for the query pipeline.
"""

from nlp.infrastructure.repositories import InMemoryTicketRepository, StaticRoleResolver
from nlp.infrastructure.external import AccessPolicyLoader

__all__ = [
    "InMemoryTicketRepository",
    "StaticRoleResolver",
    "AccessPolicyLoader",
]
