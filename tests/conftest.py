"""
Shared fixtures: builders for platform-shaped event type payloads.
"""

from typing import Any, Dict, List, Optional

import pytest


def _stats(samples: Dict[str, int], variant: str = "STRING") -> Dict[str, Any]:
    return {
        variant: {
            "count": sum(samples.values()),
            "samples": {value: {"count": count} for value, count in samples.items()},
        }
    }


def _leaf(
    name: str,
    type_: Optional[str] = "VARCHAR",
    column_name: Optional[str] = None,
    samples: Optional[Dict[str, int]] = None,
    mapped: bool = True,
) -> Dict[str, Any]:
    node: Dict[str, Any] = {"fieldName": name, "fields": []}
    if mapped:
        node["mapping"] = {
            "columnName": column_name if column_name is not None else name,
            "columnType": {"type": type_, "nonNull": False} if type_ is not None else None,
            "machineGenerated": True,
        }
    if samples is not None:
        node["stats"] = _stats(samples)
    return node


def _node(name: str, children: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"fieldName": name, "fields": children, "stats": {"OBJECT": {"count": 1000}}}


def _event(
    fields: List[Dict[str, Any]],
    name: str = "production.signup",
    count: int = 1000,
    state: str = "UNMAPPED",
) -> Dict[str, Any]:
    return {
        "name": name,
        "state": state,
        "fields": fields,
        "stats": {"count": count},
        "origin": "segment",
    }


# Even split: 2 distinct values, 50% dominance
HEALTHY = {"a": 500, "b": 500}


@pytest.fixture
def stats():
    return _stats


@pytest.fixture
def leaf():
    return _leaf


@pytest.fixture
def node():
    return _node


@pytest.fixture
def event_payload():
    return _event


@pytest.fixture
def signup_payload() -> Dict[str, Any]:
    """
    A realistic auto-mapped event type:

    messageId            primary key
    timestamp            distribution key
    userId               near-constant, discarded
    context.geolocation  bigint override
    properties.Plan Name plain varchar
    _metadata.*          platform metadata
    """
    return _event([
        _leaf("messageId", "VARCHAR", samples=HEALTHY),
        _leaf("timestamp", "TIMESTAMP", samples=HEALTHY),
        _leaf("userId", "BIGINT", samples={"a": 999, "b": 1}),
        _node("context", [
            _node("geolocation", [
                _leaf("timestamp", "FLOAT", samples=HEALTHY),
            ]),
        ]),
        _node("properties", [
            _leaf("Plan Name", "VARCHAR", samples=HEALTHY),
        ]),
        _node("_metadata", [
            _leaf("uuid", "VARCHAR", column_name="_metadata_uuid", samples={"a": 1}),
            _leaf("restream_count", "VARCHAR", column_name="_metadata_restream_count"),
        ]),
    ])
