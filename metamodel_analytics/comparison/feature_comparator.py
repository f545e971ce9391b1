"""Approximate, type-aware similarity between features."""

import logging
from typing import FrozenSet, List, Optional, Sequence, Set

from ..config.parameters import Parameters
from ..core import constants
from ..core.models import Feature, NGram, NTree, SimpleType, TypedFeature
from ..preprocessing.nlp_preprocessor import NLPTables
from ..storage.cache import ComparisonCache, CacheStats
from .tree_distance import tree_edit_distance


logger = logging.getLogger(__name__)


def type_signature(feature: Feature) -> FrozenSet[str]:
    """All type tags (content and edge) nested in a feature."""
    tags: Set[str] = set()
    stack = [feature]
    while stack:
        current = stack.pop()
        if isinstance(current, (TypedFeature, SimpleType)):
            tags.add(current.type)
        elif isinstance(current, NGram):
            stack.extend(current.items)
        elif isinstance(current, NTree):
            stack.append(current.node)
            stack.extend(current.children)
    return frozenset(tags)


def compatible_tags(tag: str, type_match: str) -> FrozenSet[str]:
    """Tags that can score above zero against ``tag`` under the type-match mode."""
    if type_match == "relaxed":
        for group in constants.RELAXED_TYPE_GROUPS:
            if tag in group:
                return group
    return frozenset((tag,))


class FeatureComparator:
    """
    Scores the similarity of two features in [0, 1].

    Rules are applied in order and short-circuit:

    1. type match: unequal tags score 0 under ``strict``; tags of one
       relaxed group score ``relaxed_type_penalty`` under ``relaxed``
    2. name match: identical token lists score 1, otherwise the synonym
       table decides; an absent name contributes 1
    3. structure: n-grams are compared position-wise (mean), optionally
       sliding the shorter over the longer; trees by normalized edit distance
    4. context: differing edges zero the n-gram (``strict``) or scale it
       down by ``context_penalty`` per share of differing edges (``linear``)
    5. clamp to [0, 1]

    Scores are cached per unordered feature pair for one VSM build.
    """

    def __init__(self, params: Parameters, cache_size: int = 100000):
        self.params = params
        self.tables = NLPTables()
        self.cache = ComparisonCache(max_entries=cache_size)
        self._threshold = params.threshold_value if params.uses_synonyms else None

    def load_up_cache(self, tables: Optional[NLPTables]) -> None:
        """Install the NLP tables for this run and start with an empty score cache."""
        self.tables = tables or NLPTables()
        self.cache.clear()
        if self._threshold is not None and self.tables.synonym_table is None:
            logger.warning("Synonym matching requested but no synonym table was precomputed")

    def clear_cache(self) -> None:
        self.cache.clear()

    def get_cache_stats(self) -> CacheStats:
        return self.cache.get_stats()

    def compare(self, a: Feature, b: Feature) -> float:
        if a == b:
            return 1.0

        cached = self.cache.get(a, b)
        if cached is not None:
            return cached

        score = self._compare(a, b)
        if score < 0:
            logger.error(f"Negative similarity {score} for {a} vs {b}, clamping to 0")
            score = 0.0
        elif score > 1.0:
            score = 1.0

        self.cache.put(a, b, score)
        return score

    def _compare(self, a: Feature, b: Feature) -> float:
        if isinstance(a, NTree) and isinstance(b, NTree):
            return self._compare_trees(a, b)
        if isinstance(a, NGram) and isinstance(b, NGram):
            return self._compare_ngrams(a, b)
        if isinstance(a, TypedFeature) and isinstance(b, TypedFeature):
            return self._compare_typed(a, b)
        if isinstance(a, SimpleType) and isinstance(b, SimpleType):
            return self.type_score(a.type, b.type)
        # different variants never match
        return 0.0

    def type_score(self, tag1: str, tag2: str) -> float:
        if tag1 == tag2:
            return 1.0
        if self.params.type_match == "relaxed" and tag2 in compatible_tags(tag1, "relaxed"):
            return self.params.relaxed_type_penalty
        return 0.0

    def _compare_typed(self, a: TypedFeature, b: TypedFeature) -> float:
        type_score = self.type_score(a.type, b.type)
        if type_score == 0.0:
            return 0.0
        return type_score * self.name_score(a.name, b.name)

    def name_score(self, name1: str, name2: str) -> float:
        if not name1 or not name2:
            return 1.0
        if name1 == name2:
            return 1.0

        tokens1 = self.tables.tokens(name1)
        tokens2 = self.tables.tokens(name2)
        if tokens1 == tokens2:
            return 1.0

        if self._threshold is None or self.tables.synonym_table is None:
            return 0.0
        if self.params.synonym == "reduced":
            return self._reduced_synonym_score(tokens1, tokens2)
        return self._full_synonym_score(tokens1, tokens2)

    def token_similarity(self, token1: str, token2: str) -> float:
        if token1 == token2:
            return 1.0
        score = self.tables.synonym_table.get(token1, token2)
        return score if score >= self._threshold else 0.0

    def _reduced_synonym_score(self, tokens1: List[str], tokens2: List[str]) -> float:
        """Position-wise match of equally long names; any unmatched token gives 0."""
        if len(tokens1) != len(tokens2):
            return 0.0
        total = 0.0
        for token1, token2 in zip(tokens1, tokens2):
            score = self.token_similarity(token1, token2)
            if score == 0.0:
                return 0.0
            total += score
        return total / len(tokens1)

    def _full_synonym_score(self, tokens1: List[str], tokens2: List[str]) -> float:
        """Symmetric best-match average over the tokens of both names."""
        if not tokens1 or not tokens2:
            return 0.0
        best1 = sum(max(self.token_similarity(t1, t2) for t2 in tokens2) for t1 in tokens1)
        best2 = sum(max(self.token_similarity(t2, t1) for t1 in tokens1) for t2 in tokens2)
        return (best1 + best2) / (len(tokens1) + len(tokens2))

    def _compare_ngrams(self, a: NGram, b: NGram) -> float:
        if a.n == b.n:
            return self._aligned_score(a.items, b.items)
        if self.params.ngram_comparison == "fixed":
            return 0.0

        shorter, longer = (a, b) if a.n < b.n else (b, a)
        best = 0.0
        for offset in range(longer.n - shorter.n + 1):
            window = longer.items[offset:offset + shorter.n]
            score = self._aligned_score(shorter.items, window) * shorter.n / longer.n
            if score > best:
                best = score
        return best

    def _aligned_score(self, items1: Sequence, items2: Sequence) -> float:
        total = 0.0
        edges = 0
        mismatched_edges = 0
        for x, y in zip(items1, items2):
            if isinstance(x, SimpleType) or isinstance(y, SimpleType):
                edges += 1
                if x != y:
                    mismatched_edges += 1
                    if self.params.context_match == "strict":
                        return 0.0
            total += self._compare(x, y) if x != y else 1.0

        score = total / len(items1)
        if mismatched_edges:
            score *= 1.0 - self.params.context_penalty * mismatched_edges / edges
        return score

    def _compare_trees(self, a: NTree, b: NTree) -> float:
        # fixed operand order keeps floating point results symmetric
        if repr(a) > repr(b):
            a, b = b, a
        distance = tree_edit_distance(
            a, b,
            children=lambda tree: tree.children,
            rename_cost=lambda x, y: 1.0 - self.compare(x.node, y.node),
        )
        return 1.0 - distance / max(a.size(), b.size())
