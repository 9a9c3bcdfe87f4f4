"""
Tests for trait scrubbing on mapped event types.
"""

from automap.canonical.event_type import EventType
from automap.pipeline.traits import is_blacklisted_trait, scrub_traits
from automap.standards.rule_config import RuleConfig

RULES = RuleConfig()


def _mapped(event_payload, leaf, node, *column_names):
    leaves = [leaf(name, "VARCHAR", column_name=name) for name in column_names]
    payload = event_payload([node("context", leaves)], state="MAPPED")
    payload["fields"][0]["father"] = "stale"
    return EventType.from_dict(payload)


class TestIsBlacklistedTrait:
    def test_trait_email(self) -> None:
        assert is_blacklisted_trait("context_traits_email", RULES) is True

    def test_meta_trait_kept(self) -> None:
        assert is_blacklisted_trait("context_traits_meta_email", RULES) is False

    def test_non_trait_kept(self) -> None:
        assert is_blacklisted_trait("properties_email", RULES) is False

    def test_trait_outside_blacklist(self) -> None:
        assert is_blacklisted_trait("context_traits_plan", RULES) is False

    def test_empty_name(self) -> None:
        assert is_blacklisted_trait("", RULES) is False


class TestScrubTraits:
    def test_scrubs_matching_columns(self, event_payload, leaf, node) -> None:
        event = _mapped(
            event_payload, leaf, node,
            "context_traits_email",
            "context_traits_meta_email",
            "properties_email",
        )

        scrubbed = scrub_traits(event, RULES)

        assert scrubbed == ["context_traits_email"]
        mapping = event.fields[0].children[0].mapping.to_dict()
        assert mapping == {
            "columnName": "",
            "columnType": None,
            "isDiscarded": True,
            "machineGenerated": False,
        }

    def test_other_columns_untouched(self, event_payload, leaf, node) -> None:
        event = _mapped(event_payload, leaf, node, "context_traits_email", "properties_email")

        scrub_traits(event, RULES)

        kept = event.fields[0].children[1].mapping
        assert kept.column_name == "properties_email"
        assert kept.is_discarded is None
        assert kept.extra["machineGenerated"] is True

    def test_tree_cleaned(self, event_payload, leaf, node) -> None:
        event = _mapped(event_payload, leaf, node, "context_traits_age")

        scrub_traits(event, RULES)

        out = event.to_dict()
        assert "stats" not in out
        assert "father" not in out["fields"][0]
        assert "stats" not in out["fields"][0]

    def test_custom_blacklist(self, event_payload, leaf, node) -> None:
        rules = RULES.with_overrides({"trait_blacklist": ["plan"]})
        event = _mapped(event_payload, leaf, node, "context_traits_email", "context_traits_plan")

        assert scrub_traits(event, rules) == ["context_traits_plan"]

    def test_nothing_to_scrub(self, event_payload, leaf, node) -> None:
        event = _mapped(event_payload, leaf, node, "properties_plan")
        assert scrub_traits(event, RULES) == []


class TestKeyRolesOnRecommit:
    """Tests that scrubbing leaves the existing table design alone."""

    def _payload(self, event_payload, leaf, node):
        timestamp = leaf("timestamp", "TIMESTAMPTZ")
        timestamp["mapping"].update({"sortKeyIndex": 0, "distKey": True, "primaryKey": False})
        email = leaf("email", "VARCHAR", column_name="context_traits_email")
        email["mapping"]["sortKeyIndex"] = 1
        return event_payload(
            [timestamp, node("context", [node("traits", [email])])],
            state="MAPPED",
        )

    def test_untouched_mapping_keeps_key_roles(self, event_payload, leaf, node) -> None:
        event = EventType.from_dict(self._payload(event_payload, leaf, node))

        scrub_traits(event, RULES)

        timestamp = event.fields[0].mapping.to_dict()
        assert timestamp["sortKeyIndex"] == 0
        assert timestamp["distKey"] is True
        assert timestamp["primaryKey"] is False

    def test_scrubbed_mapping_drops_key_roles(self, event_payload, leaf, node) -> None:
        event = EventType.from_dict(self._payload(event_payload, leaf, node))

        assert scrub_traits(event, RULES) == ["context_traits_email"]

        email = event.fields[1].children[0].children[0].mapping.to_dict()
        assert "sortKeyIndex" not in email
        assert email["isDiscarded"] is True
