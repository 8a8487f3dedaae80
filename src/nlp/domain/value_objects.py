"""
NLP Value Objects
==================

Immutable value objects for the query pipeline.

The access policy maps roles to the intents they may invoke, and carries
the per-role query suggestions shown to actors. It is built once, cannot be
mutated, and is handed to the components that need it.
"""

from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Tuple

from pydantic import (
    BaseModel, ConfigDict, Field, ValidationInfo, field_validator, model_validator
)

from config import Role
from nlp.domain.entities import IntentType


USER_INTENTS = [
    IntentType.SHOW_TICKETS,
    IntentType.SHOW_ACTIVE_TICKETS,
    IntentType.SHOW_COMPLETED_TICKETS,
    IntentType.SEARCH_TICKETS,
    IntentType.GET_TICKET_DETAILS,
    IntentType.CREATE_TICKET,
    IntentType.UPDATE_TICKET_STATUS,
    IntentType.CLOSE_TICKET,
    IntentType.GET_HELP,
    IntentType.SHOW_CAPABILITIES,
]
GUEST_INTENTS = [IntentType.GET_HELP, IntentType.SHOW_CAPABILITIES]


def _coerce_intent(intent):
    if isinstance(intent, str) and intent.strip().upper() in IntentType.__members__:
        return IntentType[intent.strip().upper()]
    return intent


def _default_roles() -> Dict[str, List[IntentType]]:
    return {
        Role.ADMIN: list(IntentType),
        Role.USER: list(USER_INTENTS),
        Role.GUEST: list(GUEST_INTENTS),
    }


def _default_suggestions() -> Dict[str, List[str]]:
    base = [
        "Show my active tickets",
        "Show my completed tickets",
        "Create a new ticket",
        "Help me with ticket management",
    ]
    return {
        Role.USER: base,
        Role.ADMIN: base + [
            "Show all tickets",
            "Search tickets with status pending",
            "Update ticket TICKET-001 status to closed",
            "Show system statistics",
            "Export tickets to CSV",
        ],
        Role.GUEST: ["Help", "What can you do"],
    }


def _default_quick_actions() -> Dict[str, List[str]]:
    return {
        Role.USER: ["View active tickets", "Create ticket"],
        Role.ADMIN: ["View active tickets", "Create ticket", "View all tickets", "Manage tickets"],
        Role.GUEST: ["Get help"],
    }


class AccessPolicy(BaseModel):
    """
    Role to intent access table, plus the suggestions offered per role.

    Role names are stored upper-cased. A role not present in ``roles``
    is treated as ``restricted_role``.
    """

    model_config = ConfigDict(frozen=True, validate_default=True)

    roles: Mapping[str, Tuple[IntentType, ...]] = Field(default_factory=_default_roles)
    restricted_role: str = Field(default=Role.GUEST)
    suggested_queries: Mapping[str, Tuple[str, ...]] = Field(
        default_factory=_default_suggestions
    )
    quick_actions: Mapping[str, Tuple[str, ...]] = Field(default_factory=_default_quick_actions)
    examples: Tuple[str, ...] = (
        "Show my tickets from yesterday",
        "Create a ticket for HR emergency",
        "Close ticket TICKET-001",
        "Search for tickets with status active",
    )

    @field_validator("roles", "suggested_queries", "quick_actions", mode="before")
    @classmethod
    def upper_case_roles(cls, v, info: ValidationInfo):
        """Normalize role keys so lookups are case-insensitive."""
        if not isinstance(v, dict):
            return v
        normalized = {str(role).strip().upper(): value for role, value in v.items()}
        if info.field_name == "roles":
            # Policy files may name intents either way: SHOW_TICKETS or show_tickets
            normalized = {
                role: [_coerce_intent(intent) for intent in (intents or [])]
                for role, intents in normalized.items()
            }
        return normalized

    @field_validator("roles", "suggested_queries", "quick_actions")
    @classmethod
    def read_only(cls, v):
        return MappingProxyType(dict(v))

    @field_validator("restricted_role")
    @classmethod
    def normalize_restricted_role(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode="after")
    def restricted_role_is_defined(self) -> "AccessPolicy":
        """The fallback role must itself have an entry."""
        if self.restricted_role not in self.roles:
            raise ValueError(
                f"restricted_role '{self.restricted_role}' is not defined in roles"
            )
        return self

    def permission_table(self) -> Mapping[str, FrozenSet[IntentType]]:
        """Read-only view of the role table with set semantics."""
        return MappingProxyType({
            role: frozenset(intents) for role, intents in self.roles.items()
        })

    def resolve_role(self, role: str) -> str:
        """Map a role name onto one the table knows about."""
        key = (role or "").strip().upper()
        return key if key in self.roles else self.restricted_role

    def suggestions_for(self, role: str) -> List[str]:
        return list(self.suggested_queries.get(self.resolve_role(role), []))

    def quick_actions_for(self, role: str) -> List[str]:
        return list(self.quick_actions.get(self.resolve_role(role), []))
