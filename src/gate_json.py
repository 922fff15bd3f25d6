"""
gatelang — JSON IR & Content Hashing
Copyright (c) 2026 Alex P. Slaby — MIT License

Machine-readable representation of circuits for the HTTP API and CLI.

Key operations:
  - to_json / from_json: Component ↔ JSON-IR round-trip
  - hash_node: content-addressed SHA-256 (Merkle over children)
  - tokens_to_json: token stream listing
"""

import json, hashlib
from gate import Component, Kind, fold

# ═══════════════════════════════════════════
# JSON-IR SCHEMA
# ═══════════════════════════════════════════

IR_VERSION = "gate-ir-v1"

GATE_IR_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "Gate-IR v1",
    "description": "JSON representation of gate trees: a node list, children before parents",
    "type": "object",
    "required": ["version", "root", "nodes"],
    "properties": {
        "version": {"const": IR_VERSION},
        "root": {"type": "integer", "minimum": 0},
        "nodes": {"type": "array", "minItems": 1, "items": {"$ref": "#/$defs/node"}},
        "metadata": {
            "type": "object",
            "properties": {
                "hash": {"type": "string", "pattern": "^[0-9a-f]{64}$"},
                "node_count": {"type": "integer", "minimum": 1},
                "max_depth": {"type": "integer", "minimum": 0},
                "input_count": {"type": "integer", "minimum": 0}
            }
        }
    },
    "$defs": {
        "node": {
            "type": "object",
            "required": ["kind"],
            "properties": {
                "kind": {"enum": ["input", "not", "and", "or"]},
                "children": {"type": "array", "items": {"type": "integer", "minimum": 0}},
                "index": {"type": "integer", "minimum": 0}
            }
        }
    }
}

KIND_NAMES = {Kind.INPUT: "input", Kind.NOT: "not", Kind.AND: "and", Kind.OR: "or"}
NAME_KINDS = {v: k for k, v in KIND_NAMES.items()}


# ═══════════════════════════════════════════
# COMPONENT → JSON
# ═══════════════════════════════════════════

def to_json(node, include_metadata=True):
    """Convert a gate tree to a JSON-IR dict.

    Nodes are flattened into a list with children before parents; a node
    refers to its children by list position. The output never nests, so
    json.dumps handles trees of any depth.
    """
    nodes = []

    def convert(n, child_ids):
        obj = {"kind": KIND_NAMES[n.kind]}
        if n.kind == Kind.INPUT:
            obj["index"] = n.index
        else:
            obj["children"] = child_ids
        nodes.append(obj)
        return len(nodes) - 1

    root = fold(node, convert)
    result = {"version": IR_VERSION, "root": root, "nodes": nodes}
    if include_metadata:
        result["metadata"] = {
            "hash": hash_node(node),
            "node_count": len(nodes),
            "max_depth": max_depth(node),
            "input_count": node.max_input() + 1,
        }
    return result


def to_json_str(node, pretty=True, **kwargs):
    """Convert to JSON string."""
    obj = to_json(node, **kwargs)
    if pretty:
        return json.dumps(obj, indent=2, ensure_ascii=False)
    return json.dumps(obj, separators=(',', ':'), ensure_ascii=False)


# ═══════════════════════════════════════════
# JSON → COMPONENT
# ═══════════════════════════════════════════

def from_json(obj):
    """Convert a JSON-IR dict (or string) back to a gate tree."""
    if isinstance(obj, str):
        obj = json.loads(obj)
    entries = obj.get("nodes")
    if not isinstance(entries, list) or not entries:
        raise ValueError("JSON-IR needs a non-empty 'nodes' list")

    built = []
    for pos, o in enumerate(entries):
        name = o.get("kind") if isinstance(o, dict) else None
        if name not in NAME_KINDS:
            raise ValueError(f"Unknown kind: {name!r}")
        kind = NAME_KINDS[name]
        if kind == Kind.INPUT:
            index = o.get("index")
            if not isinstance(index, int) or isinstance(index, bool) or index < 0:
                raise ValueError(f"Invalid input index: {index!r}")
            built.append(Component(kind, index=index))
            continue
        children = []
        for ref in o.get("children", []):
            # Children come first, so references only point backwards.
            if not isinstance(ref, int) or isinstance(ref, bool) or not 0 <= ref < pos:
                raise ValueError(f"Node {pos}: invalid child reference {ref!r}")
            children.append(built[ref])
        built.append(Component(kind, children=children))

    root = obj.get("root", len(built) - 1)
    if not isinstance(root, int) or isinstance(root, bool) or not 0 <= root < len(built):
        raise ValueError(f"Invalid root reference: {root!r}")
    return built[root]


# ═══════════════════════════════════════════
# HASHING & METRICS
# ═══════════════════════════════════════════

def hash_node(node):
    """SHA-256 content hash; each node hashes its kind, index and child hashes."""

    def digest(n, child_hashes):
        h = hashlib.sha256()
        h.update(bytes([n.kind << 4 | min(n.arity, 0x0F)]))
        for child in child_hashes:
            h.update(child)
        if n.kind == Kind.INPUT:
            h.update(str(n.index).encode())
        return h.digest()

    return fold(node, digest).hex()


def node_count(node):
    return fold(node, lambda n, counts: 1 + sum(counts))


def max_depth(node):
    return fold(node, lambda n, depths: 1 + max(depths) if depths else 0)


def tokens_to_json(tokens):
    return [{"kind": t.kind, "value": t.value, "col": t.col} for t in tokens]
