"""
NLP Application Services
========================

Application service that runs natural-language queries through the
pipeline:

    resolve role -> classify -> authorize -> extract + validate
    -> dispatch -> render

Each stage either hands its output to the next one or halts the request by
raising one of the pipeline exceptions from ``core``. The public entry
points turn any halt into a failed NLPResponse; nothing escapes them.
"""

import uuid
from typing import Optional

from config import Settings, get_settings
from core import (
    ApplicationException,
    EntityExtractionOrValidationFailed,
    IntentNotRecognized,
    OperationFailed,
    PermissionDenied,
    ValidationException,
)
from nlp.application.dispatcher import QueryDispatcher
from nlp.application.dto import Capabilities, NLPResponse, Suggestions
from nlp.application.extraction import EntityExtractor, EntityValidator
from nlp.application.intent import IntentClassifier
from nlp.application.interfaces import IRoleResolver, ITicketGateway
from nlp.application.responses import ResponseGenerator
from nlp.domain import EntityType, ExtractedEntities, Intent
from shared.infrastructure.logging import get_context_logger, log_latency

__all__ = ["NLPService", "ITicketGateway", "IRoleResolver"]


class NLPService:
    """
    Service for answering natural-language ticket queries.

    Coordinates the classifier, extractor, validator, dispatcher and
    generator. Holds no per-request state, so one instance can serve
    concurrent callers.
    """

    def __init__(
        self,
        classifier: IntentClassifier,
        extractor: EntityExtractor,
        validator: EntityValidator,
        dispatcher: QueryDispatcher,
        generator: ResponseGenerator,
        role_resolver: IRoleResolver,
        settings: Optional[Settings] = None,
    ):
        self._classifier = classifier
        self._extractor = extractor
        self._validator = validator
        self._dispatcher = dispatcher
        self._generator = generator
        self._roles = role_resolver
        self._settings = settings or get_settings()

    # ========== Query entry points ==========

    def process_query(self, text: str, actor_id: str) -> NLPResponse:
        """
        Process a query on behalf of an actor, subject to role permissions.

        Args:
            text: Free-text query
            actor_id: Authenticated actor identifier

        Returns:
            NLPResponse; failures are reported, never raised
        """
        return self._process(text, actor_id, admin_path=False)

    def process_admin_query(self, text: str, actor_id: str) -> NLPResponse:
        """
        Process a query on the administrative path.

        The caller has already established administrator status, so role
        resolution and the permission check are skipped.
        """
        return self._process(text, actor_id, admin_path=True)

    def _process(self, text: str, actor_id: str, admin_path: bool) -> NLPResponse:
        logger = get_context_logger(__name__, uuid.uuid4().hex)
        try:
            with log_latency(logger, "nlp_query", admin_path=admin_path):
                return self._run(text, actor_id, admin_path, logger)
        except ApplicationException as e:
            logger.info(
                f"Query halted: {type(e).__name__}",
                extra={"halt": type(e).__name__, "details": e.details},
            )
            return NLPResponse.failure(e.message, e.details.get("intent"))
        except Exception as e:
            logger.exception("Unexpected error while processing query")
            return NLPResponse.failure(f"Error processing query: {e}")

    def _run(self, text: str, actor_id: str, admin_path: bool, logger) -> NLPResponse:
        self._check_input(text, actor_id)
        logger.debug("Query received", extra={"query_length": len(text), "admin_path": admin_path})

        role = self._settings.admin_role if admin_path else self._resolve_role(actor_id, logger)

        intent = self._classifier.recognize_intent(text)
        if intent is None:
            raise IntentNotRecognized()
        code = intent.type.code
        logger.info(
            "Intent recognized",
            extra={"intent": code, "confidence": round(intent.confidence, 3)},
        )

        if not admin_path and not self._classifier.is_intent_allowed(intent.type, role):
            raise PermissionDenied(intent.type, role)

        entities = self._extract_and_validate(text, intent, logger)

        is_admin = admin_path or role == self._settings.admin_role
        result = self._dispatcher.process_query(intent, entities, actor_id, is_admin)
        if not result.success:
            raise OperationFailed(result.message, {"intent": code})

        return NLPResponse(
            success=True,
            message=self._generator.generate_response(result),
            data=result.payload,
            query_type=code,
        )

    def _check_input(self, text: str, actor_id: str) -> None:
        if not actor_id or not actor_id.strip():
            raise ValidationException("User ID cannot be null or empty")
        if not text or not text.strip():
            raise IntentNotRecognized({"reason": "empty query"})
        limit = self._settings.max_query_length
        if len(text) > limit:
            raise ValidationException(f"Query exceeds maximum length of {limit} characters")

    def _resolve_role(self, actor_id: str, logger) -> str:
        """Actor role, falling back to the default role on any lookup problem."""
        default = self._settings.default_role
        try:
            role = self._roles.role_of(actor_id)
        except Exception:
            logger.warning("Role resolution failed, using default role", exc_info=True)
            return default
        if not role or not role.strip():
            return default
        return role.strip().upper()

    def _extract_and_validate(self, text: str, intent: Intent, logger) -> ExtractedEntities:
        code = intent.type.code
        try:
            entities = self._extractor.extract_entities(text)
            validation = self._validator.validate_entities(entities, intent)
        except Exception as e:
            logger.warning(f"Entity extraction failed: {e}", exc_info=True)
            raise EntityExtractionOrValidationFailed(details={"intent": code}) from e

        if not validation.valid:
            raise EntityExtractionOrValidationFailed(
                validation.errors, {"intent": code, "errors": list(validation.errors)}
            )
        return entities

    # ========== Discovery ==========

    def get_capabilities(self, actor_id: str) -> Capabilities:
        """Intents and suggestions available to an actor."""
        try:
            role = self._lookup_role(actor_id)
        except Exception:
            get_context_logger(__name__).warning("Capabilities unavailable", exc_info=True)
            return Capabilities(available=False)

        policy = self._classifier.access_policy
        return Capabilities(
            available=True,
            is_admin=role == self._settings.admin_role,
            access_level=policy.resolve_role(role),
            suggested_queries=policy.suggestions_for(role),
            supported_intents=[i.value for i in self._classifier.supported_intents(role)],
            supported_entities=[e.value for e in EntityType],
        )

    def get_suggestions(self, actor_id: str) -> Suggestions:
        """Suggested, example and quick-action queries for an actor."""
        try:
            role = self._lookup_role(actor_id)
        except Exception:
            get_context_logger(__name__).warning("Suggestions unavailable", exc_info=True)
            return Suggestions(available=False)

        policy = self._classifier.access_policy
        return Suggestions(
            available=True,
            user_role=role,
            access_level=policy.resolve_role(role),
            suggested_queries=policy.suggestions_for(role),
            examples=list(policy.examples),
            quick_actions=policy.quick_actions_for(role),
        )

    def _lookup_role(self, actor_id: str) -> str:
        if not actor_id or not actor_id.strip():
            raise ValidationException("User ID cannot be null or empty")
        role = self._roles.role_of(actor_id)
        return role.strip().upper() if role and role.strip() else self._settings.default_role

    def is_service_healthy(self) -> bool:
        """Check that the pipeline can classify a trivial query."""
        try:
            return self._classifier.recognize_intent("help") is not None
        except Exception:
            get_context_logger(__name__).error("NLP service health check failed", exc_info=True)
            return False
