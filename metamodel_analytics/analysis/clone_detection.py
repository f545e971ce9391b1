"""Clone detection over the ``cloneFull``/``cloneMask`` matrix pair."""

import os
import logging
from typing import List, Optional

import numpy as np
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import braycurtis, squareform

from ..core import constants
from ..core.models import CloneReport
from ..vsm import matrix_io


logger = logging.getLogger(__name__)


def masked_distances(full: np.ndarray, mask: np.ndarray) -> np.ndarray:
    """
    Bray-Curtis distances of the ``full`` rows, restricted per pair to the
    columns where either row's ``mask`` entry is set.

    A pair sharing no masked column, or with all-zero values there, is at
    distance 1.

    Raises:
        ValueError: If the two matrices differ in shape.
    """
    full = np.asarray(full, dtype=float)
    mask = np.asarray(mask, dtype=float) > 0
    if full.shape != mask.shape:
        raise ValueError(f"Full matrix {full.shape} and mask {mask.shape} differ in shape")

    n_rows = full.shape[0]
    distances = np.ones((n_rows, n_rows))
    for i in range(n_rows):
        for j in range(i + 1, n_rows):
            columns = mask[i] | mask[j]
            a = full[i, columns]
            b = full[j, columns]
            if np.sum(a + b) > 0:
                distances[i, j] = distances[j, i] = min(max(braycurtis(a, b), 0.0), 1.0)
    np.fill_diagonal(distances, 0.0)
    return distances


class CloneDetector:
    """Groups models whose masked distance stays within a threshold."""

    def __init__(self, threshold: float = 0.3, method: str = "average"):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError("Clone threshold must be between 0 and 1")
        self.threshold = threshold
        self.method = method

    def group(self, distances: np.ndarray) -> List[int]:
        """Zero-based group per row, numbered in order of first member."""
        n_rows = distances.shape[0]
        if n_rows == 0:
            return []
        if n_rows == 1:
            return [0]

        tree = linkage(squareform(distances, checks=False), method=self.method)
        raw = fcluster(tree, t=self.threshold, criterion="distance")
        numbering = {}
        return [numbering.setdefault(int(label), len(numbering)) for label in raw]

    def detect(self,
               full: np.ndarray,
               mask: np.ndarray,
               names: List[str],
               sizes: Optional[List[int]] = None) -> CloneReport:
        """
        Compute masked distances, clone groups and clone pairs.

        Raises:
            ValueError: If names or sizes do not match the matrix rows.
        """
        n_rows = np.asarray(full).shape[0]
        if len(names) != n_rows:
            raise ValueError(f"{len(names)} names for {n_rows} matrix rows")
        sizes = list(sizes) if sizes is not None else [0] * n_rows
        if len(sizes) != n_rows:
            raise ValueError(f"{len(sizes)} sizes for {n_rows} matrix rows")

        distances = masked_distances(full, mask)
        pairs = [
            (names[i], names[j], float(distances[i, j]))
            for i in range(n_rows)
            for j in range(i + 1, n_rows)
            if distances[i, j] <= self.threshold
        ]
        report = CloneReport(names=list(names), sizes=sizes, distances=distances,
                             groups=self.group(distances), pairs=pairs)
        logger.info(f"Found {len(pairs)} clone pairs in {len(report.clone_groups())} groups "
                    f"among {n_rows} models (threshold {self.threshold})")
        return report

    def detect_folder(self, vsm_folder: str, output_folder: Optional[str] = None) -> CloneReport:
        """
        Read the clone matrices with their names and sizes, then write
        ``clonePairs.csv`` and ``cloneGroups.csv``.

        Raises:
            FileNotFoundError: If an input file is missing.
        """
        inputs = [
            os.path.join(vsm_folder, "vsm-cloneFull.csv"),
            os.path.join(vsm_folder, "vsm-cloneMask.csv"),
            os.path.join(vsm_folder, constants.NAMES_FILE),
            os.path.join(vsm_folder, constants.SIZES_FILE),
        ]
        for path in inputs:
            if not os.path.exists(path):
                raise FileNotFoundError(f"Clone detection input not found: {path}")

        full_path, mask_path, names_path, sizes_path = inputs
        report = self.detect(
            matrix_io.read_matrix_csv(full_path),
            matrix_io.read_matrix_csv(mask_path),
            matrix_io.read_names(names_path),
            matrix_io.read_sizes(sizes_path),
        )

        output_folder = output_folder or vsm_folder
        os.makedirs(output_folder, exist_ok=True)
        matrix_io.write_clone_pairs(report.pairs, os.path.join(output_folder, constants.CLONE_PAIRS_FILE))
        matrix_io.write_clone_groups(report.names, report.groups, report.sizes,
                                     os.path.join(output_folder, constants.CLONE_GROUPS_FILE))
        logger.info(f"Clone report written to {output_folder}")
        return report
