import json
import logging

import pytest
from pydantic import ValidationError

from config import Settings
from nlp.bootstrap import create_nlp_service
from nlp.domain import AccessPolicy
from shared.infrastructure.logging import (
    REDACTED, CustomJsonFormatter, get_context_logger, log_latency, setup_logging,
)


def make_record(**extra):
    record = logging.LogRecord("nlp.test", logging.INFO, __file__, 1, "Query received", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_adds_context_and_redacts():
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="test")
    record = make_record(correlation_id="cid-1", query_text="my badge is 1234",
                         api_key="secret", tokens_used=12)
    payload = json.loads(formatter.format(record))

    assert payload["message"] == "Query received"
    assert payload["correlation_id"] == "cid-1"
    assert payload["environment"] == "test"
    assert payload["timestamp"]
    assert payload["query_text"] == REDACTED
    assert payload["api_key"] == REDACTED
    assert payload["tokens_used"] == 12


def test_context_logger_merges_correlation_id(caplog):
    logger = get_context_logger("nlp.test", "cid-42")
    with caplog.at_level(logging.INFO, logger="nlp.test"):
        logger.info("Intent recognized", extra={"intent": "get_help"})

    record = caplog.records[-1]
    assert record.correlation_id == "cid-42"
    assert record.intent == "get_help"


def test_context_logger_without_id_is_plain_logger():
    assert isinstance(get_context_logger("nlp.test"), logging.Logger)


def test_log_latency(caplog):
    logger = logging.getLogger("nlp.test")
    with caplog.at_level(logging.INFO, logger="nlp.test"):
        with log_latency(logger, "nlp_query", admin_path=False):
            pass

    record = caplog.records[-1]
    assert record.getMessage() == "nlp_query completed"
    assert record.operation == "nlp_query"
    assert record.latency_ms >= 0


def json_handlers():
    return [h for h in logging.getLogger().handlers
            if isinstance(h.formatter, CustomJsonFormatter)]


def test_service_startup_installs_json_logging():
    settings = Settings(environment="test", log_level="debug", _env_file=None)
    create_nlp_service(settings=settings, access_policy=AccessPolicy())

    handlers = json_handlers()
    assert len(handlers) == 1
    assert handlers[0].formatter.environment == "test"
    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_is_repeatable_and_keeps_other_handlers():
    other = logging.NullHandler()
    logging.getLogger().addHandler(other)

    setup_logging("INFO", "test")
    setup_logging("WARNING", "test")

    assert len(json_handlers()) == 1
    assert other in logging.getLogger().handlers
    assert logging.getLogger().level == logging.WARNING


def test_unknown_log_level_is_rejected():
    with pytest.raises(ValidationError):
        Settings(log_level="LOUD", _env_file=None)
