"""Reading node/relationship payloads produced by the extraction service."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List, Mapping, Tuple, Union

from .types import Node, Relationship, is_node_id


class GraphDataError(ValueError):
    pass


def _field(entry: Mapping[str, Any], key: str, where: str, *, required: bool) -> str:
    value = entry.get(key)
    if value is None:
        if required:
            raise GraphDataError(f"{where}: missing '{key}'")
        return ""
    if not isinstance(value, str):
        raise GraphDataError(f"{where}: '{key}' must be a string, got {type(value).__name__}")
    return value


def parse_graph(payload: Mapping[str, Any]) -> Tuple[List[Node], List[Relationship]]:
    """Convert ``{"nodes": [...], "relationships": [...]}`` into records.

    Relationships naming unknown ids are kept; the engine simply does not
    render them.
    """

    if not isinstance(payload, Mapping):
        raise GraphDataError("graph payload must be an object")
    raw_nodes = payload.get("nodes", [])
    raw_relationships = payload.get("relationships", [])
    if not isinstance(raw_nodes, list):
        raise GraphDataError("'nodes' must be a list")
    if not isinstance(raw_relationships, list):
        raise GraphDataError("'relationships' must be a list")

    nodes: List[Node] = []
    for idx, entry in enumerate(raw_nodes):
        where = f"nodes[{idx}]"
        if not isinstance(entry, Mapping):
            raise GraphDataError(f"{where}: expected an object")
        node_id = _field(entry, "id", where, required=True)
        if not is_node_id(node_id):
            raise GraphDataError(f"{where}: 'id' must be a non-empty string")
        nodes.append(
            Node(
                id=node_id,
                type=_field(entry, "type", where, required=False),
                detail=_field(entry, "detail", where, required=False),
            )
        )

    relationships: List[Relationship] = []
    for idx, entry in enumerate(raw_relationships):
        where = f"relationships[{idx}]"
        if not isinstance(entry, Mapping):
            raise GraphDataError(f"{where}: expected an object")
        relationships.append(
            Relationship(
                source=_field(entry, "source", where, required=True),
                target=_field(entry, "target", where, required=True),
                type=_field(entry, "type", where, required=False),
            )
        )
    return nodes, relationships


def load_graph(path: Union[str, Path]) -> Tuple[List[Node], List[Relationship]]:
    text = Path(path).read_text(encoding="utf-8")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise GraphDataError(f"{path}: invalid JSON ({exc})") from exc
    return parse_graph(payload)


__all__ = ["GraphDataError", "load_graph", "parse_graph"]
