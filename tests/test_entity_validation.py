import pytest

from core import ServiceUnavailable
from nlp.application import EntityExtractor, EntityValidator
from nlp.domain import Intent, IntentType


def validate(text, intent_type, validator=None):
    validator = validator or EntityValidator()
    entities = EntityExtractor().extract_entities(text)
    return validator.validate_entities(entities, Intent(intent_type, 1.0, text))


def test_valid_creation_request():
    result = validate("create a fire emergency ticket for building collapse",
                      IntentType.CREATE_TICKET)
    assert result.valid
    assert result.errors == ()



@pytest.mark.parametrize("text", [
    "create a medical emergency ticket for COVID-19 ward lockdown",
    "create a ticket for covid-19 testing room",
])
def test_creation_ignores_id_like_words_in_description(text):
    lookup = EntityValidator(ticket_lookup=lambda ticket_id: False)
    assert validate(text, IntentType.CREATE_TICKET).valid
    assert validate(text, IntentType.CREATE_TICKET, lookup).valid


def test_close_with_hyphenated_description_has_one_ticket_id():
    result = validate("close ticket TICKET-001 for x-ray room repairs", IntentType.CLOSE_TICKET)
    assert result.valid

def test_malformed_ticket_id():
    result = validate("show tickets for invalid-ticket-id", IntentType.GET_TICKET_DETAILS)
    assert not result.valid
    assert list(result.errors) == ["Invalid ticket ID format: invalid-ticket-id"]


def test_missing_ticket_id():
    result = validate("close my ticket", IntentType.CLOSE_TICKET)
    assert list(result.errors) == ["Missing ticket ID"]


def test_multiple_ticket_ids():
    result = validate("show ticket TICKET-001 and TICKET-002", IntentType.GET_TICKET_DETAILS)
    assert list(result.errors) == ["Multiple ticket IDs provided"]


def test_update_requires_a_status():
    result = validate("update ticket TICKET-001", IntentType.UPDATE_TICKET_STATUS)
    assert list(result.errors) == ["Missing status"]


def test_unknown_status():
    result = validate("update ticket TICKET-001 status to banana",
                      IntentType.UPDATE_TICKET_STATUS)
    assert list(result.errors) == ["Invalid status: banana"]


def test_every_violation_is_reported_in_rule_order():
    result = validate("update ticket bad-id status to banana", IntentType.UPDATE_TICKET_STATUS)
    assert list(result.errors) == ["Invalid ticket ID format: bad-id", "Invalid status: banana"]


def test_impossible_date():
    result = validate("show my tickets from 2024-02-30", IntentType.SHOW_TICKETS)
    assert list(result.errors) == ["Invalid date format: 2024-02-30"]


def test_unknown_emergency_type():
    result = validate("create ticket with emergency type: alien", IntentType.CREATE_TICKET)
    assert list(result.errors) == ["Invalid emergency type: alien"]


def test_at_most_one_emergency_type_for_creation():
    result = validate("create a fire emergency and medical emergency ticket",
                      IntentType.CREATE_TICKET)
    assert list(result.errors) == ["Multiple emergency types provided"]


def test_search_needs_a_criterion():
    assert list(validate("search tickets", IntentType.SEARCH_TICKETS).errors) == [
        "No search criteria provided"
    ]
    assert validate("search tickets with status pending", IntentType.SEARCH_TICKETS).valid


def test_duration_limit():
    validator = EntityValidator(max_duration_minutes=60)
    result = validate("create ticket for server outage for 2 hours",
                      IntentType.CREATE_TICKET, validator)
    assert list(result.errors) == ["Invalid duration: 2 hours"]


def test_description_limit():
    validator = EntityValidator(max_description_length=10)
    result = validate("create ticket for a description that is far too long",
                      IntentType.CREATE_TICKET, validator)
    assert list(result.errors) == ["Description exceeds 10 characters"]


def test_ticket_lookup_rejects_unknown_ids():
    validator = EntityValidator(ticket_lookup=lambda ticket_id: ticket_id == "TICKET-001")
    assert validate("close ticket TICKET-001", IntentType.CLOSE_TICKET, validator).valid
    result = validate("close ticket TICKET-009", IntentType.CLOSE_TICKET, validator)
    assert list(result.errors) == ["Unknown ticket ID: TICKET-009"]


def test_ticket_lookup_failure_propagates():
    def unavailable(ticket_id):
        raise ServiceUnavailable("Ticket store", "Database connection failed")

    validator = EntityValidator(ticket_lookup=unavailable)
    with pytest.raises(ServiceUnavailable):
        validate("close ticket TICKET-001", IntentType.CLOSE_TICKET, validator)
