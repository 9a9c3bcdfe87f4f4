"""
Type rules for platform metadata fields.

Metadata fields (resolved name contains the metadata marker) are never
discarded and bypass the pattern-driven type chain. Each rule lists the
substrings that trigger it; rules run in order and a later match overrides
the type chosen by an earlier one.
"""

METADATA_TYPE_RULES = [
    {
        "name": "character",
        "patterns": (
            "_object",
            "_url",
            "_id",
            "uuid",
            "input",
            "type",
            "database",
            "db",
            "collection",
            "table",
            "schema",
            "token",
            "version",
            "client",
        ),
        "type": "VARCHAR",
        "character": True,
    },
    {
        "name": "timestamp",
        "patterns": ("timestamp", "updated", "pull_time"),
        "type": "TIMESTAMP",
    },
    {
        "name": "boolean",
        "patterns": ("deleted",),
        "type": "BOOLEAN",
    },
    {
        "name": "bigint",
        "patterns": ("restream_count", "ordinal"),
        "type": "BIGINT",
    },
]
