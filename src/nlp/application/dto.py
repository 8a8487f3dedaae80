"""
NLP Application DTOs
====================

Data Transfer Objects returned to callers of the query pipeline.

Pydantic models for response validation and serialization.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class NLPResponse(BaseModel):
    """Outcome of one natural-language query."""
    success: bool = Field(..., description="Whether the query was executed")
    message: str = Field(..., description="Rendered reply or failure reason")
    data: Optional[Any] = Field(None, description="Operation payload (IDs, ticket, CSV...)")
    query_type: Optional[str] = Field(None, description="Recognized intent code")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def failure(cls, message: str, query_type: Optional[str] = None) -> "NLPResponse":
        return cls(success=False, message=message, query_type=query_type)


class Capabilities(BaseModel):
    """What an actor can ask for."""
    available: bool
    is_admin: bool = False
    access_level: str = Field("", description="USER or ADMIN")
    suggested_queries: List[str] = Field(default_factory=list)
    supported_intents: List[str] = Field(default_factory=list)
    supported_entities: List[str] = Field(default_factory=list)


class Suggestions(BaseModel):
    """Queries to suggest to an actor."""
    available: bool
    user_role: str = ""
    access_level: str = ""
    suggested_queries: List[str] = Field(default_factory=list)
    examples: List[str] = Field(default_factory=list)
    quick_actions: List[str] = Field(default_factory=list)
