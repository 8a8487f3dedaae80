"""
NLP Service Composition
=======================

Wires the query pipeline together.

STARTUP:
1. Load settings
2. Install JSON logging at the configured level
3. Load the access policy (YAML file or defaults)
4. Build classifier, extractor, validator, dispatcher and generator
5. Hand them, with the collaborators, to NLPService
"""

from typing import Optional

from config import Settings, get_settings
from nlp.application import (
    EntityExtractor,
    EntityValidator,
    IntentClassifier,
    IRoleResolver,
    ITicketGateway,
    NLPService,
    QueryDispatcher,
    ResponseGenerator,
)
from nlp.domain import AccessPolicy
from nlp.infrastructure import AccessPolicyLoader, InMemoryTicketRepository, StaticRoleResolver
from shared.infrastructure.logging import get_logger, setup_logging

logger = get_logger(__name__)


def create_nlp_service(
    ticket_gateway: Optional[ITicketGateway] = None,
    role_resolver: Optional[IRoleResolver] = None,
    settings: Optional[Settings] = None,
    access_policy: Optional[AccessPolicy] = None,
) -> NLPService:
    """
    Build a ready-to-use NLPService.

    Args:
        ticket_gateway: Ticket operations; an empty in-memory store if omitted
        role_resolver: Actor role lookup; resolves nobody if omitted
        settings: Settings override, defaults to the cached settings
        access_policy: Policy override, otherwise loaded from
            ``settings.access_policy_path``

    Returns:
        NLPService
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.environment)

    ticket_gateway = ticket_gateway or InMemoryTicketRepository()
    role_resolver = role_resolver or StaticRoleResolver({})
    policy = access_policy or AccessPolicyLoader().load(settings.access_policy_path)

    validator = EntityValidator(
        max_description_length=settings.max_description_length,
        max_duration_minutes=settings.max_ticket_duration_minutes,
        ticket_lookup=ticket_gateway.ticket_exists if settings.verify_ticket_references else None,
    )

    service = NLPService(
        classifier=IntentClassifier(policy, settings.intent_confidence_threshold),
        extractor=EntityExtractor(),
        validator=validator,
        dispatcher=QueryDispatcher(ticket_gateway),
        generator=ResponseGenerator(settings.max_response_length),
        role_resolver=role_resolver,
        settings=settings,
    )

    logger.info("NLP service created", extra={
        "version": settings.app_version,
        "environment": settings.environment,
        "roles": sorted(policy.roles),
    })
    return service
