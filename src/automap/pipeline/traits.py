"""
Pipeline step: trait scrubbing for already mapped event types

Identity traits (email, name, birthday, ...) copied into event payloads are
dropped from existing mappings. Metadata-like trait columns are kept.
"""

from typing import List

from automap.canonical.event_type import EventType
from automap.pipeline.annotator import clean_up
from automap.standards.rule_config import RuleConfig
from automap.utils.naming import in_pattern


def is_blacklisted_trait(column_name: str, rules: RuleConfig) -> bool:
    return (
        bool(column_name)
        and in_pattern(column_name, rules.trait_blacklist)
        and in_pattern(column_name, [rules.trait_marker])
        and not in_pattern(column_name, [rules.trait_meta_exempt])
    )


def scrub_traits(event_type: EventType, rules: RuleConfig) -> List[str]:
    """
    Discard blacklisted trait columns in place and return their former names.
    Key roles of the existing mapping are left untouched.
    """
    clean_up(event_type, keep_key_roles=True)

    scrubbed: List[str] = []
    for leaf in event_type.iter_leaves():
        mapping = leaf.mapping
        if mapping is None or not is_blacklisted_trait(mapping.column_name, rules):
            continue

        scrubbed.append(mapping.column_name)
        mapping.discard()
        mapping.clear_key_roles()
        mapping.extra["machineGenerated"] = False

    clean_up(event_type, keep_key_roles=True)
    return scrubbed
