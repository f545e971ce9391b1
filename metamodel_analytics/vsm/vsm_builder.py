"""Builds document-by-feature matrices from a folder of feature files."""

import os
import logging
import time
from typing import Dict, Iterable, List, Optional, Tuple

from scipy import sparse

from ..config.parameters import Parameters
from ..core import constants
from ..core.models import Feature, VSMResult
from ..comparison.feature_comparator import FeatureComparator, compatible_tags, type_signature
from ..extraction.serialization import read_feature_file
from ..preprocessing.nlp_preprocessor import NLPTables
from . import matrix_io
from .weighting import TypeWeighter, compute_idf, document_frequencies, scale_columns


logger = logging.getLogger(__name__)


class Vocabulary:
    """Insertion-ordered set of distinct features."""

    def __init__(self, features: Iterable[Feature] = ()):
        self._features: List[Feature] = []
        self._index: Dict[Feature, int] = {}
        for feature in features:
            self.add(feature)

    def add(self, feature: Feature) -> int:
        index = self._index.get(feature)
        if index is None:
            index = len(self._features)
            self._index[feature] = index
            self._features.append(feature)
        return index

    def index(self, feature: Feature) -> Optional[int]:
        return self._index.get(feature)

    def __getitem__(self, index: int) -> Feature:
        return self._features[index]

    def __iter__(self):
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, feature) -> bool:
        return feature in self._index


class VSMBuilder:
    """
    Document matrix builder for one feature folder.

    Each ``build`` call runs ingest, fill, type weighting, IDF weighting and
    emit for a single parameter record. Comparator state lives only for the
    duration of that call.
    """

    def __init__(self,
                 feature_folder: str,
                 vsm_folder: str,
                 cache_size: int = 100000,
                 progress_interval: int = 100):
        """
        Initialize the builder.

        Args:
            feature_folder: Folder holding ``*.features`` files
            vsm_folder: Output folder for ``vsm-<tag>.csv`` and sibling files
            cache_size: Maximum entries of the comparison cache
            progress_interval: Log progress every N rows
        """
        self.feature_folder = feature_folder
        self.vsm_folder = vsm_folder
        self.cache_size = cache_size
        self.progress_interval = progress_interval

    def ingest(self, serialization: str = "plain") -> Tuple[List[str], List[List[Feature]], Vocabulary]:
        """
        Read every feature file in lexicographic order.

        Returns:
            Row names, row features and the vocabulary

        Raises:
            FileNotFoundError: If the feature folder does not exist.
        """
        if not os.path.isdir(self.feature_folder):
            raise FileNotFoundError(f"Feature folder not found: {self.feature_folder}")

        filenames = sorted(
            filename for filename in os.listdir(self.feature_folder)
            if filename.endswith(constants.FEATURE_FILE_SUFFIX)
        )

        names: List[str] = []
        all_features: List[List[Feature]] = []
        vocabulary = Vocabulary()
        for filename in filenames:
            features = read_feature_file(os.path.join(self.feature_folder, filename), serialization)
            names.append(filename[:-len(constants.FEATURE_FILE_SUFFIX)])
            all_features.append(features)
            for feature in features:
                vocabulary.add(feature)

        logger.info(f"Ingested {len(names)} feature files, vocabulary size {len(vocabulary)}")
        return names, all_features, vocabulary

    def fill_linear(self,
                    all_features: List[List[Feature]],
                    vocabulary: Vocabulary,
                    frequency: str = "sum") -> sparse.csr_matrix:
        """Exact-match fill: every feature only increments its own column."""
        matrix = sparse.lil_matrix((len(all_features), len(vocabulary)), dtype=float)
        for i, features in enumerate(all_features):
            for feature in features:
                j = vocabulary.index(feature)
                if frequency == "max":
                    matrix[i, j] = 1.0
                else:
                    matrix[i, j] += 1.0
            self._log_progress(i, len(all_features))
        return matrix.tocsr()

    def fill_quadratic(self,
                       all_features: List[List[Feature]],
                       vocabulary: Vocabulary,
                       comparator: FeatureComparator,
                       frequency: str = "sum") -> sparse.csr_matrix:
        """
        Approximate fill: every row feature is compared with every
        vocabulary entry it could possibly match.

        Columns sharing no compatible type tag with a feature score 0 and are
        skipped; per cell the scores are still accumulated in row-feature order.
        """
        type_match = comparator.params.type_match
        columns_by_tag: Dict[str, List[int]] = {}
        for j, feature in enumerate(vocabulary):
            for tag in type_signature(feature):
                columns_by_tag.setdefault(tag, []).append(j)

        candidates_cache: Dict[Feature, List[int]] = {}

        def candidates(feature: Feature) -> List[int]:
            columns = candidates_cache.get(feature)
            if columns is None:
                found = set()
                for tag in type_signature(feature):
                    for compatible in compatible_tags(tag, type_match):
                        found.update(columns_by_tag.get(compatible, ()))
                columns = sorted(found)
                candidates_cache[feature] = columns
            return columns

        matrix = sparse.lil_matrix((len(all_features), len(vocabulary)), dtype=float)
        for i, features in enumerate(all_features):
            row: Dict[int, float] = {}
            for feature in features:
                for j in candidates(feature):
                    score = comparator.compare(feature, vocabulary[j])
                    if frequency == "max":
                        if score > row.get(j, 0.0):
                            row[j] = score
                    else:
                        row[j] = row.get(j, 0.0) + score
            for j in sorted(row):
                if row[j] != 0.0:
                    matrix[i, j] = row[j]
            self._log_progress(i, len(all_features))
        return matrix.tocsr()

    def apply_type_weights(self, matrix: sparse.spmatrix, vocabulary: Vocabulary, scheme: str) -> sparse.csr_matrix:
        weights = TypeWeighter(scheme).column_weights(vocabulary)
        return scale_columns(matrix, weights)

    def apply_idf(self, matrix: sparse.spmatrix, mode: str) -> sparse.csr_matrix:
        doc_freqs = document_frequencies(matrix)
        idf = compute_idf(doc_freqs, matrix.shape[0], mode)
        return scale_columns(matrix, idf)

    def build(self, params: Parameters, tag: str, nlp_tables: Optional[NLPTables] = None) -> VSMResult:
        """
        Build, weight and write the document matrix ``vsm-<tag>.csv``.

        Args:
            params: Frozen parameter record
            tag: Suffix of the output file, e.g. 'cluster', 'cloneFull'
            nlp_tables: Token and synonym tables for name matching

        Returns:
            VSMResult with the final CSR matrix and row metadata
        """
        start_time = time.time()
        logger.info(f"Building VSM '{tag}' with parameters {params.identifier()}")

        names, all_features, vocabulary = self.ingest(params.serialization)

        if params.vsm_mode == "linear":
            matrix = self.fill_linear(all_features, vocabulary, params.frequency)
        else:
            comparator = FeatureComparator(params, cache_size=self.cache_size)
            comparator.load_up_cache(nlp_tables)
            try:
                matrix = self.fill_quadratic(all_features, vocabulary, comparator, params.frequency)
                stats = comparator.get_cache_stats()
                logger.info(f"Comparison cache: {stats.cache_hits} hits, {stats.cache_misses} misses, "
                            f"{stats.evictions} evictions")
            finally:
                comparator.clear_cache()

        if params.weight != "raw":
            matrix = self.apply_type_weights(matrix, vocabulary, params.weight)
        if params.idf != "none":
            matrix = self.apply_idf(matrix, params.idf)

        os.makedirs(self.vsm_folder, exist_ok=True)
        output_path = os.path.join(self.vsm_folder, f"vsm-{tag}.csv")
        matrix_io.write_matrix_csv(matrix, output_path)

        logger.info(f"VSM '{tag}' {matrix.shape[0]}x{matrix.shape[1]} built in "
                    f"{time.time() - start_time:.2f} seconds")

        return VSMResult(
            tag=tag,
            matrix=matrix,
            row_names=names,
            row_sizes=[len(features) for features in all_features],
            vocabulary=list(vocabulary),
            output_path=output_path,
        )

    def write_names(self, result: VSMResult) -> str:
        os.makedirs(self.vsm_folder, exist_ok=True)
        path = os.path.join(self.vsm_folder, constants.NAMES_FILE)
        matrix_io.write_names(result.row_names, path)
        return path

    def write_sizes(self, result: VSMResult) -> str:
        os.makedirs(self.vsm_folder, exist_ok=True)
        path = os.path.join(self.vsm_folder, constants.SIZES_FILE)
        matrix_io.write_sizes(result.row_sizes, path)
        return path

    def _log_progress(self, i: int, total: int) -> None:
        if (i + 1) % self.progress_interval == 0:
            logger.info(f"Filled {i + 1}/{total} rows")
