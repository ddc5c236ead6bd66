"""Tests for walking the manifest into desired subscriptions."""

from fakes import listening, make_packages
from listener_sync.models.manifest import CallableDeclaration
from listener_sync.models.subscription import DesiredSubscription
from listener_sync.reconcile.desired import extract_desired_subscriptions


def _triples(state):
    return [(s.package_name, s.callable_name, s.event_type) for s in state]


def test_walk_order_packages_then_actions_then_sequences():
    packages = make_packages({
        "pkgA": {
            "sequences": {"seq1": listening("evt3")},
            "actions": {"act1": listening("evt1", "evt2"), "act2": listening("evt4")},
        },
        "pkgB": {"actions": {"act3": listening("evt5")}},
    })
    assert _triples(extract_desired_subscriptions(packages)) == [
        ("pkgA", "act1", "evt1"),
        ("pkgA", "act1", "evt2"),
        ("pkgA", "act2", "evt4"),
        ("pkgA", "seq1", "evt3"),
        ("pkgB", "act3", "evt5"),
    ]


def test_callables_without_listeners_are_skipped():
    packages = make_packages({
        "pkg": {
            "actions": {
                "plain": {"function": "index.js"},
                "other_relation": {"relations": {"depends-on": ["x"]}},
                "empty": {"relations": {"listeners-for-events": []}},
                "listener": listening("evt1"),
            },
        },
    })
    assert _triples(extract_desired_subscriptions(packages)) == [("pkg", "listener", "evt1")]


def test_legacy_relation_key_is_honoured():
    packages = make_packages({
        "pkg": {"actions": {"act": {"relations": {"event-listener-for": ["evt1"]}}}},
    })
    assert _triples(extract_desired_subscriptions(packages)) == [("pkg", "act", "evt1")]


def test_duplicate_event_types_collapse():
    packages = make_packages({"pkg": {"actions": {"act": listening("evt1", "evt1", "evt2")}}})
    assert _triples(extract_desired_subscriptions(packages)) == [
        ("pkg", "act", "evt1"),
        ("pkg", "act", "evt2"),
    ]


def test_state_is_restartable():
    packages = make_packages({"pkg": {"actions": {"act": listening("evt1", "evt2")}}})
    state = extract_desired_subscriptions(packages)
    assert list(state) == list(state)
    assert len(list(state)) == 2


def test_pairs_and_event_types():
    packages = make_packages({
        "pkgA": {"actions": {"x": listening("evt1")}},
        "pkgB": {"sequences": {"y": listening("evt1", "evt2")}},
    })
    state = extract_desired_subscriptions(packages)
    assert state.pairs() == {("pkgA/x", "evt1"), ("pkgB/y", "evt1"), ("pkgB/y", "evt2")}
    assert state.event_types() == {"evt1", "evt2"}


def test_empty_manifest_has_no_subscriptions():
    assert list(extract_desired_subscriptions({})) == []


def test_runtime_action_joins_package_and_callable():
    sub = DesiredSubscription(event_type="evt", package_name="pkg", callable_name="act")
    assert sub.runtime_action == "pkg/act"


def test_callable_declaration_keeps_unknown_fields():
    decl = CallableDeclaration.model_validate({"function": "a.js", "web": "yes", "relations": None})
    assert decl.listens_for == []
    assert decl.model_extra["web"] == "yes"
