import pytest

from nlp.application import IntentClassifier, IntentPattern, normalize_text
from nlp.domain import AccessPolicy, IntentType


@pytest.fixture
def classifier():
    return IntentClassifier(AccessPolicy())


@pytest.mark.parametrize("text,expected", [
    ("show my tickets", IntentType.SHOW_TICKETS),
    ("Show my active tickets", IntentType.SHOW_ACTIVE_TICKETS),
    ("show my completed tickets", IntentType.SHOW_COMPLETED_TICKETS),
    ("search for tickets with status open", IntentType.SEARCH_TICKETS),
    ("show tickets for invalid-ticket-id", IntentType.GET_TICKET_DETAILS),
    ("show ticket TICKET-001", IntentType.GET_TICKET_DETAILS),
    ("update ticket TICKET-001 status to closed", IntentType.UPDATE_TICKET_STATUS),
    ("create a fire emergency ticket for building collapse", IntentType.CREATE_TICKET),
    ("close ticket TICKET-001", IntentType.CLOSE_TICKET),
    ("show all tickets in the system", IntentType.SHOW_ALL_TICKETS),
    ("show system statistics", IntentType.GET_SYSTEM_STATS),
    ("Export tickets to CSV", IntentType.EXPORT_TICKETS),
    ("help", IntentType.GET_HELP),
    ("What can you do?", IntentType.SHOW_CAPABILITIES),
])
def test_recognizes_intent(classifier, text, expected):
    intent = classifier.recognize_intent(text)
    assert intent is not None
    assert intent.type == expected
    assert intent.source_text == text
    assert 0.7 <= intent.confidence <= 1.0


def test_exact_phrase_scores_pattern_weight(classifier):
    assert classifier.recognize_intent("show my tickets").confidence == 1.0


def test_contextual_ticket_reference_scores_below_exact_match(classifier):
    intent = classifier.recognize_intent("show tickets for invalid-ticket-id")
    assert intent.confidence == pytest.approx(0.72)


@pytest.mark.parametrize("text", ["hello there", "what's the weather like", "", "   ", None])
def test_unmatched_text_is_not_understood(classifier, text):
    assert classifier.recognize_intent(text) is None


def test_classification_is_deterministic(classifier):
    text = "create a fire emergency ticket for building collapse"
    assert classifier.recognize_intent(text) == classifier.recognize_intent(text)


def test_ties_go_to_the_first_declared_intent():
    patterns = {
        IntentType.GET_HELP: (IntentPattern(exact_phrases=("assist",)),),
        IntentType.SHOW_CAPABILITIES: (IntentPattern(exact_phrases=("assist",)),),
    }
    classifier = IntentClassifier(patterns=patterns)
    assert classifier.recognize_intent("assist").type == IntentType.GET_HELP


def test_threshold_is_configurable():
    strict = IntentClassifier(confidence_threshold=0.9)
    assert strict.recognize_intent("show tickets for invalid-ticket-id") is None
    assert strict.recognize_intent("show my tickets").type == IntentType.SHOW_TICKETS


def test_keywords_only_count_without_phrase_or_regex_hit():
    pattern = IntentPattern(keywords=("export", "csv"), weight=1.0)
    assert pattern.score("export please", ["export", "please"]) == pytest.approx(0.3)


def test_rank_intents_orders_by_confidence(classifier):
    ranked = classifier.rank_intents("close ticket TICKET-001")
    assert ranked[0].type == IntentType.CLOSE_TICKET
    assert IntentType.GET_TICKET_DETAILS in [i.type for i in ranked]
    assert [i.confidence for i in ranked] == sorted((i.confidence for i in ranked), reverse=True)


def test_normalize_text():
    assert normalize_text("  Show   my TICKETS!! ") == "show my tickets"
    assert normalize_text("ticket BMW-FF-12345?") == "ticket bmw-ff-12345"


# ========== Permissions ==========

def test_user_cannot_invoke_admin_intents(classifier):
    for intent_type in (IntentType.SHOW_ALL_TICKETS, IntentType.GET_SYSTEM_STATS,
                        IntentType.EXPORT_TICKETS):
        assert not classifier.is_intent_allowed(intent_type, "USER")
        assert classifier.is_intent_allowed(intent_type, "ADMIN")


def test_admin_may_invoke_every_intent(classifier):
    assert all(classifier.is_intent_allowed(i, "ADMIN") for i in IntentType)


def test_role_names_are_case_insensitive(classifier):
    assert classifier.is_intent_allowed(IntentType.SHOW_ALL_TICKETS, "admin")
    assert classifier.is_intent_allowed(IntentType.CREATE_TICKET, " user ")


def test_unknown_role_gets_most_restrictive_set(classifier):
    assert classifier.supported_intents("MANAGER") == [IntentType.GET_HELP,
                                                       IntentType.SHOW_CAPABILITIES]
    assert not classifier.is_intent_allowed(IntentType.SHOW_TICKETS, "MANAGER")


def test_blank_role_is_never_allowed(classifier):
    assert not classifier.is_intent_allowed(IntentType.GET_HELP, "")


def test_user_intents(classifier):
    assert set(classifier.supported_intents("USER")) == {
        IntentType.SHOW_TICKETS, IntentType.SHOW_ACTIVE_TICKETS,
        IntentType.SHOW_COMPLETED_TICKETS, IntentType.SEARCH_TICKETS,
        IntentType.GET_TICKET_DETAILS, IntentType.CREATE_TICKET,
        IntentType.UPDATE_TICKET_STATUS, IntentType.CLOSE_TICKET,
        IntentType.GET_HELP, IntentType.SHOW_CAPABILITIES,
    }


def test_injected_policy_replaces_defaults():
    policy = AccessPolicy(roles={"user": ["GET_HELP"], "guest": []})
    classifier = IntentClassifier(policy)
    assert classifier.is_intent_allowed(IntentType.GET_HELP, "USER")
    assert not classifier.is_intent_allowed(IntentType.SHOW_TICKETS, "USER")
    assert not classifier.is_intent_allowed(IntentType.GET_HELP, "ADMIN")
