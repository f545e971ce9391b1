"""Plain-text and tree-JSON formats of feature files."""

import json
import logging
from typing import List, Optional, Union

from ..core.models import Feature, NGram, NTree, SimpleType, TypedFeature


logger = logging.getLogger(__name__)


def format_simple(feature: Union[SimpleType, TypedFeature]) -> str:
    """``type:name`` for typed features, the bare type for edges."""
    if isinstance(feature, TypedFeature):
        return f"{feature.type}:{feature.name}"
    return feature.type


def format_ngram(ngram: NGram) -> str:
    return " ".join(format_simple(item) for item in ngram.items)


def tree_to_dict(tree: NTree) -> dict:
    return {
        "node": format_ngram(tree.node),
        "children": [tree_to_dict(child) for child in tree.children],
    }


def format_feature(feature: Feature) -> str:
    """Serialize a feature to one line of a feature file."""
    if isinstance(feature, NTree):
        return json.dumps(tree_to_dict(feature), separators=(",", ":"))
    if isinstance(feature, NGram):
        return format_ngram(feature)
    return format_simple(feature)


def parse_simple(text: str) -> Union[SimpleType, TypedFeature]:
    if ":" in text:
        type_tag, name = text.split(":", 1)
        if not type_tag:
            raise ValueError(f"Missing type tag in {text!r}")
        return TypedFeature(type_tag, name)
    return SimpleType(text)


def parse_ngram(text: str) -> NGram:
    parts = text.split()
    if not parts:
        raise ValueError("Empty n-gram")
    return NGram(tuple(parse_simple(part) for part in parts))


def tree_from_dict(data: dict) -> NTree:
    if not isinstance(data, dict) or "node" not in data:
        raise ValueError(f"Tree object without 'node': {data!r}")
    node = data["node"]
    if not isinstance(node, str):
        raise ValueError(f"Tree node must be an n-gram string: {node!r}")
    children = data.get("children") or []
    if not isinstance(children, list):
        raise ValueError(f"Tree children must be a list: {children!r}")
    return NTree(parse_ngram(node), tuple(tree_from_dict(child) for child in children))


def parse_plain_line(line: str) -> Optional[NGram]:
    """Parse a plain-text feature line; None for blank lines."""
    line = line.strip()
    if not line:
        return None
    return parse_ngram(line)


def parse_json_line(line: str) -> Optional[NTree]:
    """Parse a tree-JSON feature line; None for blank lines."""
    line = line.strip()
    if not line:
        return None
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid tree JSON: {e}")
    return tree_from_dict(data)


def read_feature_file(path: str, serialization: str = "plain") -> List[Feature]:
    """
    Read all features of a feature file.

    Blank lines are ignored; unparsable lines are logged and skipped.

    Args:
        path: Path of a ``.features`` file
        serialization: 'plain' for n-grams, 'json' for trees
    """
    parse_line = parse_json_line if serialization == "json" else parse_plain_line
    features: List[Feature] = []

    with open(path, 'rb') as f:
        for line_number, raw in enumerate(f, start=1):
            try:
                # UnicodeDecodeError is a ValueError: bad bytes skip only their line
                feature = parse_line(raw.decode('utf-8'))
            except ValueError as e:
                logger.error(f"Skipping unparsable feature at {path}:{line_number}: {e}")
                continue
            if feature is not None:
                features.append(feature)

    return features


def write_feature_file(path: str, features: List[Feature]) -> None:
    with open(path, 'w', encoding='utf-8') as f:
        for feature in features:
            f.write(format_feature(feature) + "\n")
