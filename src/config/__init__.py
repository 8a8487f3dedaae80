"""
Configuration Module
====================

Application settings and configuration management using Pydantic.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
from functools import lru_cache
from pathlib import Path
from typing import Dict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="emergency-access-nlp", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(default="development", description="Environment name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root logging level")

    # ========== Query Pipeline ==========
    intent_confidence_threshold: float = Field(
        default=0.7,
        description="Minimum score for an intent to be recognized",
        ge=0.0,
        le=1.0
    )
    max_query_length: int = Field(
        default=500,
        description="Maximum accepted query length in characters",
        ge=1
    )
    max_response_length: int = Field(
        default=1000,
        description="Rendered responses longer than this are truncated",
        ge=20
    )
    max_description_length: int = Field(
        default=500,
        description="Maximum length of a ticket description entity",
        ge=1
    )
    max_ticket_duration_minutes: int = Field(
        default=1440,
        description="Longest emergency access window a ticket may request",
        ge=1
    )
    verify_ticket_references: bool = Field(
        default=False,
        description="Check extracted ticket IDs against the ticket gateway"
    )

    # ========== Access Policy ==========
    default_role: str = Field(default="USER", description="Role used when none resolves")
    admin_role: str = Field(default="ADMIN", description="Role granted full breadth")
    access_policy_path: Path = Field(
        default=Path("access_policy.yaml"),
        description="Path to the role/intent access policy YAML file"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production", "test"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is a standard logging level name."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @field_validator("default_role", "admin_role")
    @classmethod
    def normalize_role(cls, v: str) -> str:
        """Role names are compared upper-cased."""
        if not v or not v.strip():
            raise ValueError("role name cannot be empty")
        return v.strip().upper()


@lru_cache()
def get_settings() -> Settings:
    """Returns cached Settings instance."""
    return Settings()


# ========== Constants ==========

class Role(str):
    """Actor roles known to the access policy."""
    ADMIN = "ADMIN"
    USER = "USER"
    GUEST = "GUEST"     # Most restrictive, used for unknown roles


class TicketStatus(str):
    """Emergency access ticket lifecycle statuses."""
    ACTIVE = "Active"
    PENDING = "Pending"
    COMPLETED = "Completed"
    CLOSED = "Closed"
    REJECTED = "Rejected"


class EmergencyType(str):
    """Kinds of emergency a ticket can be raised for."""
    FIRE = "fire"
    MEDICAL = "medical"
    SECURITY = "security"
    TECHNICAL = "technical"
    HR = "hr"
    FINANCIAL = "financial"
    MANAGEMENT = "management"
    LOGISTICS = "logistics"
    GENERAL = "general"


# ========== Lists for validation ==========

VALID_STATUSES = [
    TicketStatus.ACTIVE, TicketStatus.PENDING, TicketStatus.COMPLETED,
    TicketStatus.CLOSED, TicketStatus.REJECTED
]
VALID_EMERGENCY_TYPES = [
    EmergencyType.FIRE, EmergencyType.MEDICAL, EmergencyType.SECURITY,
    EmergencyType.TECHNICAL, EmergencyType.HR, EmergencyType.FINANCIAL,
    EmergencyType.MANAGEMENT, EmergencyType.LOGISTICS, EmergencyType.GENERAL
]
TERMINAL_STATUSES = [TicketStatus.COMPLETED, TicketStatus.CLOSED, TicketStatus.REJECTED]

# Words a user may type for a status, mapped to the canonical status
STATUS_ALIASES: Dict[str, str] = {
    "open": TicketStatus.ACTIVE,
    "active": TicketStatus.ACTIVE,
    "in progress": TicketStatus.ACTIVE,
    "pending": TicketStatus.PENDING,
    "done": TicketStatus.COMPLETED,
    "complete": TicketStatus.COMPLETED,
    "completed": TicketStatus.COMPLETED,
    "close": TicketStatus.CLOSED,
    "closed": TicketStatus.CLOSED,
    "rejected": TicketStatus.REJECTED,
    "revoked": TicketStatus.REJECTED,
}
