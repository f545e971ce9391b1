"""Core components and data models for metamodel analytics."""

from .models import (
    SimpleType,
    TypedFeature,
    NGram,
    NTree,
    Feature,
    ModelElement,
    ModelEdge,
    ModelGraph,
    VSMResult
)

from .interfaces import (
    TokenizerInterface,
    LemmatizerInterface,
    LexicalDatabaseInterface,
    ModelLoaderInterface
)

__all__ = [
    "SimpleType",
    "TypedFeature",
    "NGram",
    "NTree",
    "Feature",
    "ModelElement",
    "ModelEdge",
    "ModelGraph",
    "VSMResult",
    "TokenizerInterface",
    "LemmatizerInterface",
    "LexicalDatabaseInterface",
    "ModelLoaderInterface"
]
