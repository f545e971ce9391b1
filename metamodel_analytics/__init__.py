"""
Metamodel Analytics

Turns a corpus of Ecore metamodels into typed features, precomputes name
tokens and synonyms, and builds vector space models for clustering and
clone detection.
"""

__version__ = "0.1.0"
__author__ = "Metamodel Analytics Team"

from .core.models import (
    SimpleType,
    TypedFeature,
    NGram,
    NTree,
    Feature,
    ModelGraph,
    VSMResult
)
from .config.parameters import Parameters

__all__ = [
    "SimpleType",
    "TypedFeature",
    "NGram",
    "NTree",
    "Feature",
    "ModelGraph",
    "VSMResult",
    "Parameters"
]
