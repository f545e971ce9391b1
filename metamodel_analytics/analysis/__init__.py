"""Statistical back end over built document matrices."""

from .clustering import HierarchicalClusterer, cosine_distances, publish_predictions
from .clone_detection import CloneDetector, masked_distances

__all__ = [
    'HierarchicalClusterer',
    'cosine_distances',
    'publish_predictions',
    'CloneDetector',
    'masked_distances'
]
