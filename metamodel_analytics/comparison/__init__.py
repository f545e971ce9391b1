"""Feature similarity scoring."""

from .tree_distance import tree_edit_distance
from .feature_comparator import FeatureComparator, compatible_tags, type_signature

__all__ = [
    'tree_edit_distance',
    'FeatureComparator',
    'compatible_tags',
    'type_signature'
]
