import pytest

from nlp.application import EntityExtractor
from nlp.domain import EntityType


@pytest.fixture
def extractor():
    return EntityExtractor()


def values(entities, entity_type):
    return [e.value for e in entities[entity_type]]


def normalized(entities, entity_type):
    return [e.normalized for e in entities[entity_type]]


def test_extracts_ticket_creation_entities(extractor):
    text = "create a fire emergency ticket for building collapse"
    entities = extractor.extract_entities(text)

    assert values(entities, EntityType.EMERGENCY_TYPE) == ["fire"]
    assert values(entities, EntityType.DESCRIPTION) == ["building collapse"]
    assert not entities.has(EntityType.TICKET_ID)
    assert not entities.has(EntityType.LOCATION)


def test_spans_index_into_source_text(extractor):
    text = "Update ticket TICKET-001 status to Closed, at Building 7 today"
    entities = extractor.extract_entities(text)
    found = [e for t in EntityType for e in entities[t]]

    assert found
    for entity in found:
        assert 0 <= entity.span_start <= entity.span_end
        assert text[entity.span_start:entity.span_end] == entity.value


def test_overlapping_matches_of_one_type_are_kept_once(extractor):
    entities = extractor.extract_entities("update ticket TICKET-001 status to closed")
    assert values(entities, EntityType.TICKET_ID) == ["TICKET-001"]
    assert values(entities, EntityType.STATUS) == ["closed"]


def test_ticket_id_forms(extractor):
    entities = extractor.extract_entities("compare BMW-FF-12345 with ticket-7")
    assert normalized(entities, EntityType.TICKET_ID) == ["BMW-FF-12345", "TICKET-7"]


def test_malformed_ticket_reference_is_still_extracted(extractor):
    entities = extractor.extract_entities("show tickets for invalid-ticket-id")
    assert values(entities, EntityType.TICKET_ID) == ["invalid-ticket-id"]


def test_dates_in_order_of_appearance(extractor):
    entities = extractor.extract_entities(
        "search tickets from 2024-05-01 and 12/31/2024 or yesterday"
    )
    assert normalized(entities, EntityType.DATE) == ["2024-05-01", "2024-12-31", "yesterday"]


def test_impossible_date_keeps_raw_value(extractor):
    entities = extractor.extract_entities("show tickets from 2024-02-30")
    assert normalized(entities, EntityType.DATE) == ["2024-02-30"]


def test_contact_and_duration(extractor):
    text = ("create a medical emergency ticket for patient transfer "
            "with contact +1 555-123-4567 for 2 hours")
    entities = extractor.extract_entities(text)

    assert values(entities, EntityType.DESCRIPTION) == ["patient transfer"]
    assert normalized(entities, EntityType.PHONE) == ["+15551234567"]
    assert normalized(entities, EntityType.DURATION) == ["120"]
    assert normalized(entities, EntityType.EMERGENCY_TYPE) == ["medical"]


def test_location(extractor):
    entities = extractor.extract_entities("search tickets at Building 5")
    assert values(entities, EntityType.LOCATION) == ["Building 5"]


def test_multi_word_status(extractor):
    entities = extractor.extract_entities("show tickets in progress")
    assert normalized(entities, EntityType.STATUS) == ["in progress"]
    assert not entities.has(EntityType.LOCATION)


def test_unknown_emergency_type_is_left_for_validation(extractor):
    entities = extractor.extract_entities("create ticket with emergency type: alien")
    assert normalized(entities, EntityType.EMERGENCY_TYPE) == ["alien"]



@pytest.mark.parametrize("text, description", [
    ("create a medical emergency ticket for x-ray room failure", "x-ray room failure"),
    ("create a ticket for follow-up inspection", "follow-up inspection"),
])
def test_hyphenated_words_are_not_ticket_ids(extractor, text, description):
    entities = extractor.extract_entities(text)
    assert not entities.has(EntityType.TICKET_ID)
    assert values(entities, EntityType.DESCRIPTION) == [description]


def test_id_like_token_after_ticket_is_kept_for_validation(extractor):
    entities = extractor.extract_entities("show tickets for invalid-ticket-id")
    assert values(entities, EntityType.TICKET_ID) == ["invalid-ticket-id"]
    entities = extractor.extract_entities("update ticket bad-id status to closed")
    assert values(entities, EntityType.TICKET_ID) == ["bad-id"]

def test_no_match_gives_empty_tuples_for_every_type(extractor):
    entities = extractor.extract_entities("hello")
    assert entities.is_empty
    assert all(entities[t] == () for t in EntityType)
    assert extractor.extract_entities("").is_empty


def test_extraction_is_pure(extractor):
    text = "close ticket TICKET-001 for fire emergency today"
    first = extractor.extract_entities(text)
    second = extractor.extract_entities(text)

    assert first == second
    assert first.summary() == second.summary()


def test_result_is_read_only(extractor):
    entities = extractor.extract_entities("close ticket TICKET-001")
    with pytest.raises(TypeError):
        entities.by_type[EntityType.TICKET_ID] = ()
