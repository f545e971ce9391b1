"""Type weighting and IDF utilities for document matrix columns."""

import logging
from typing import Dict, Set

import numpy as np
from scipy import sparse

from ..core import constants
from ..core.models import Feature, NGram, NTree, SimpleType, TypedFeature


logger = logging.getLogger(__name__)


WEIGHT_TABLES: Dict[str, Dict[str, float]] = {
    "raw": {
        constants.EPACKAGE: 1.0,
        constants.EDATATYPE: 1.0,
        constants.ECLASS: 1.0,
        constants.EREFERENCE: 1.0,
        constants.EATTRIBUTE: 1.0,
        constants.EENUM: 1.0,
        constants.EENUM_LITERAL: 1.0,
        constants.EOPERATION: 1.0,
        constants.EPARAMETER: 1.0,
        constants.HAS_SUPERTYPE: 1.0,
        constants.THROWS: 1.0,
    },
    "w1": {
        constants.EPACKAGE: 1.0,
        constants.EDATATYPE: 0.2,
        constants.ECLASS: 1.0,
        constants.EREFERENCE: 0.5,
        constants.EATTRIBUTE: 0.5,
        constants.EENUM: 1.0,
        constants.EENUM_LITERAL: 1.0,
        constants.EOPERATION: 0.3,
        constants.EPARAMETER: 0.1,
        constants.HAS_SUPERTYPE: 0.2,
        constants.THROWS: 0.1,
    },
    "w2": {
        constants.EPACKAGE: 2.0,
        constants.EDATATYPE: 0.1,
        constants.ECLASS: 1.0,
        constants.EREFERENCE: 0.5,
        constants.EATTRIBUTE: 0.5,
        constants.EENUM: 1.0,
        constants.EENUM_LITERAL: 1.0,
        constants.EOPERATION: 0.2,
        constants.EPARAMETER: 0.01,
        constants.HAS_SUPERTYPE: 0.2,
        constants.THROWS: 0.1,
    },
}

# Edges whose own weight counts; any other edge passes through to its target
WEIGHTED_EDGES = (constants.HAS_SUPERTYPE, constants.THROWS)


class TypeWeighter:
    """Per-feature weight derived from the type tags of its payload."""

    def __init__(self, scheme: str = "raw"):
        if scheme not in WEIGHT_TABLES:
            raise ValueError(f"Unknown weight scheme: {scheme}")
        self.scheme = scheme
        self.table = WEIGHT_TABLES[scheme]
        self._reported: Set[str] = set()

    def tag_weight(self, tag: str) -> float:
        weight = self.table.get(tag)
        if weight is None:
            if tag not in self._reported:
                logger.warning(f"No '{self.scheme}' weight for type tag '{tag}', using 1.0")
                self._reported.add(tag)
            return 1.0
        return weight

    def feature_weight(self, feature: Feature) -> float:
        if isinstance(feature, NTree):
            return self._tree_weight(feature)
        if isinstance(feature, NGram):
            return self._ngram_weight(feature)
        return self.tag_weight(feature.type)

    def _ngram_weight(self, ngram: NGram) -> float:
        total = 0.0
        terms = 0
        skip_next = False
        for item in ngram.items:
            if skip_next:
                skip_next = False
                continue
            if isinstance(item, SimpleType):
                if item.type in WEIGHTED_EDGES:
                    # the edge stands for its target
                    total += self.tag_weight(item.type)
                    terms += 1
                    skip_next = True
                continue
            total += self.tag_weight(item.type)
            terms += 1
        return total / terms if terms else 1.0

    def _tree_weight(self, tree: NTree) -> float:
        total = self.tag_weight(tree.type_tag)
        terms = 1
        for child in tree.children:
            items = child.node.items
            if len(items) < 2 or not isinstance(items[0], SimpleType):
                continue
            edge, target = items[0], items[1]
            if edge.type in WEIGHTED_EDGES:
                total += self.tag_weight(edge.type)
            else:
                total += self.tag_weight(target.type)
            terms += 1
        return total / terms

    def column_weights(self, vocabulary) -> np.ndarray:
        return np.array([self.feature_weight(feature) for feature in vocabulary], dtype=float)


def document_frequencies(matrix: sparse.spmatrix) -> np.ndarray:
    """Number of rows with a positive value, per column."""
    positive = (matrix > 0).astype(np.int64)
    return np.asarray(positive.sum(axis=0)).ravel()


def compute_idf(doc_freqs: np.ndarray, total_documents: int, mode: str) -> np.ndarray:
    """
    IDF factor per column.

    Args:
        doc_freqs: Document frequency of each column
        total_documents: Number of rows
        mode: 'log' for log10(N/df), 'norm-log' for log10(1 + N/df)
    """
    if mode not in ("log", "norm-log"):
        raise ValueError(f"Unknown IDF mode: {mode}")

    idf = np.zeros(len(doc_freqs), dtype=float)
    for j, df in enumerate(doc_freqs):
        if df <= 0:
            logger.error(f"Column {j} has no positive entries, IDF set to 0")
            continue
        ratio = total_documents / df
        idf[j] = np.log10(ratio) if mode == "log" else np.log10(1.0 + ratio)
    return idf


def scale_columns(matrix: sparse.spmatrix, factors: np.ndarray) -> sparse.csr_matrix:
    """Multiply every cell of column j by factors[j]."""
    if matrix.shape[1] == 0:
        return sparse.csr_matrix(matrix)
    scaled = sparse.csr_matrix(matrix) @ sparse.diags(factors, format="csr")
    scaled = sparse.csr_matrix(scaled)
    scaled.eliminate_zeros()
    return scaled
