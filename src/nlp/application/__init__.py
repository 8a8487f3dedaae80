"""
NLP Application Layer
=====================

Use cases of the query pipeline and the interfaces it depends on.
"""

from nlp.application.interfaces import ITicketGateway, IRoleResolver
from nlp.application.intent import IntentClassifier, IntentPattern, normalize_text
from nlp.application.extraction import EntityExtractor, EntityValidator
from nlp.application.dispatcher import QueryDispatcher, DISPATCH_TABLE
from nlp.application.responses import ResponseGenerator
from nlp.application.dto import NLPResponse, Capabilities, Suggestions
from nlp.application.services import NLPService

__all__ = [
    # Interfaces
    "ITicketGateway",
    "IRoleResolver",
    # Pipeline stages
    "IntentClassifier",
    "IntentPattern",
    "normalize_text",
    "EntityExtractor",
    "EntityValidator",
    "QueryDispatcher",
    "DISPATCH_TABLE",
    "ResponseGenerator",
    # Service & DTOs
    "NLPService",
    "NLPResponse",
    "Capabilities",
    "Suggestions",
]
