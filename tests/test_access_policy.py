from pathlib import Path

import pytest

from core import ConfigurationException
from nlp.domain import AccessPolicy, IntentType
from nlp.infrastructure import AccessPolicyLoader

SHIPPED_POLICY = Path(__file__).resolve().parents[1] / "access_policy.yaml"


def test_default_policy_roles():
    policy = AccessPolicy()
    assert set(policy.roles) == {"ADMIN", "USER", "GUEST"}
    assert policy.restricted_role == "GUEST"
    assert policy.resolve_role("contractor") == "GUEST"


def test_permission_table_is_read_only():
    table = AccessPolicy().permission_table()
    with pytest.raises(TypeError):
        table["USER"] = frozenset(IntentType)
    assert isinstance(table["USER"], frozenset)


def test_policy_is_frozen():
    policy = AccessPolicy()
    with pytest.raises(Exception):
        policy.restricted_role = "USER"


def test_policy_collections_cannot_be_changed_in_place():
    policy = AccessPolicy()
    with pytest.raises(TypeError):
        policy.roles["GUEST"] = (IntentType.EXPORT_TICKETS,)
    with pytest.raises(AttributeError):
        policy.roles["GUEST"].append(IntentType.EXPORT_TICKETS)
    with pytest.raises(TypeError):
        policy.suggested_queries["GUEST"] = ("Show all tickets",)
    with pytest.raises(AttributeError):
        policy.quick_actions["USER"].append("Manage tickets")
    assert isinstance(policy.examples, tuple)
    assert IntentType.EXPORT_TICKETS not in policy.permission_table()["GUEST"]


def test_shipped_policy_matches_defaults():
    loaded = AccessPolicyLoader().load(SHIPPED_POLICY)
    defaults = AccessPolicy()
    assert dict(loaded.permission_table()) == dict(defaults.permission_table())
    assert loaded.suggested_queries == defaults.suggested_queries
    assert loaded.quick_actions == defaults.quick_actions


def test_missing_file_uses_defaults(tmp_path):
    policy = AccessPolicyLoader().load(tmp_path / "absent.yaml")
    assert policy == AccessPolicy()


def test_load_accepts_lowercase_roles_and_intent_codes(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text(
        "restricted_role: visitor\n"
        "roles:\n"
        "  operator: [show_tickets, CREATE_TICKET]\n"
        "  visitor: [get_help]\n"
    )
    policy = AccessPolicyLoader().load(path)
    assert policy.roles["OPERATOR"] == (IntentType.SHOW_TICKETS, IntentType.CREATE_TICKET)
    assert policy.resolve_role("anyone") == "VISITOR"


@pytest.mark.parametrize("content", [
    "roles: [unclosed\n",
    "- just\n- a list\n",
    "roles:\n  USER: [FLY_TO_MOON]\n  GUEST: []\n",
    "restricted_role: NOBODY\n",
])
def test_malformed_policy_is_a_configuration_error(tmp_path, content):
    path = tmp_path / "policy.yaml"
    path.write_text(content)
    with pytest.raises(ConfigurationException):
        AccessPolicyLoader().load(path)
