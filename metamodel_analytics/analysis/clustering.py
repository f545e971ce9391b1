"""Hierarchical clustering of a document matrix and label publishing."""

import os
import logging
from typing import List, Optional

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

from ..core import constants
from ..vsm import matrix_io


logger = logging.getLogger(__name__)


def cosine_distances(matrix: np.ndarray) -> np.ndarray:
    """
    Pairwise cosine distances of the rows; all-zero rows are at distance 1
    from every other row.
    """
    matrix = np.asarray(matrix, dtype=float)
    norms = np.linalg.norm(matrix, axis=1)
    safe = np.where(norms > 0, norms, 1.0)
    unit = matrix / safe[:, None]
    distances = 1.0 - unit @ unit.T
    distances = np.clip(distances, 0.0, 2.0)
    distances[norms == 0, :] = 1.0
    distances[:, norms == 0] = 1.0
    np.fill_diagonal(distances, 0.0)
    # symmetric up to rounding
    return (distances + distances.T) / 2.0


class HierarchicalClusterer:
    """Agglomerative clustering of VSM rows into a fixed number of clusters."""

    def __init__(self, n_clusters: int = 2, method: str = "average"):
        if n_clusters < 1:
            raise ValueError("Number of clusters must be positive")
        self.n_clusters = n_clusters
        self.method = method

    def fit_predict(self, matrix: np.ndarray) -> List[int]:
        """Zero-based cluster label per row."""
        n_rows = matrix.shape[0]
        if n_rows == 0:
            return []
        if n_rows == 1 or self.n_clusters == 1:
            return [0] * n_rows

        condensed = squareform(cosine_distances(matrix), checks=False)
        tree = linkage(condensed, method=self.method)
        labels = fcluster(tree, t=min(self.n_clusters, n_rows), criterion="maxclust")
        return [int(label) - 1 for label in labels]

    def cluster_folder(self, vsm_folder: str, tag: str = "cluster",
                       output_folder: Optional[str] = None) -> List[int]:
        """
        Cluster ``vsm-<tag>.csv`` and write ``clusterLabels.csv``.

        Args:
            vsm_folder: Folder holding the matrix and ``names.csv``
            tag: Matrix tag
            output_folder: Folder receiving the labels; the VSM folder when omitted

        Raises:
            FileNotFoundError: If the matrix or the names file is missing.
        """
        matrix_path = os.path.join(vsm_folder, f"vsm-{tag}.csv")
        names_path = os.path.join(vsm_folder, constants.NAMES_FILE)
        for path in (matrix_path, names_path):
            if not os.path.exists(path):
                raise FileNotFoundError(f"Clustering input not found: {path}")

        matrix = matrix_io.read_matrix_csv(matrix_path)
        names = matrix_io.read_names(names_path)
        if matrix.shape[0] != len(names):
            raise ValueError(f"{len(names)} names for {matrix.shape[0]} matrix rows")

        labels = self.fit_predict(matrix)
        output_folder = output_folder or vsm_folder
        os.makedirs(output_folder, exist_ok=True)
        labels_path = os.path.join(output_folder, constants.CLUSTER_LABELS_FILE)
        matrix_io.write_cluster_labels(labels, labels_path)
        logger.info(f"Clustered {len(labels)} models into {len(set(labels))} clusters, labels in {labels_path}")
        return labels


def publish_predictions(labels_path: str, root: str, output_name: Optional[str] = None) -> str:
    """Copy cluster labels into the task root as a JSON array."""
    if not os.path.exists(labels_path):
        raise FileNotFoundError(f"Cluster labels not found: {labels_path}")
    labels = matrix_io.read_cluster_labels(labels_path)
    output_path = os.path.join(root, output_name or constants.PREDICTIONS_FILE)
    matrix_io.write_predictions(labels, output_path)
    logger.info(f"Published {len(labels)} predictions to {output_path}")
    return output_path
