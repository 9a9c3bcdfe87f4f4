import re
from typing import Iterable

_LOWER_UPPER = re.compile(r"([a-z\d])([A-Z])")
_UPPER_RUN = re.compile(r"([A-Z]+)([A-Z][a-z\d]+)")


def decamelize(name: str) -> str:
    """
    Split camelCase word boundaries with underscores and lowercase.

    userId -> user_id, XMLHttp -> xml_http, already_snake -> already_snake
    """
    name = _LOWER_UPPER.sub(r"\1_\2", name)
    name = _UPPER_RUN.sub(r"\1_\2", name)
    return name.lower()


def fix_naming(name: str) -> str:
    """
    Column-safe form of a raw field name: decamelized, spaces as underscores.
    """
    return decamelize(name or "").replace(" ", "_")


def in_pattern(text: str, patterns: Iterable[str]) -> bool:
    """
    Case-insensitive substring match against any of the patterns.
    """
    if not text:
        return False
    lowered = text.lower()
    return any(p.lower() in lowered for p in patterns)
