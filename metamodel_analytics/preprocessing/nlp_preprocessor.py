"""Token and synonym table precomputation over the names in a feature folder."""

import os
import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from ..core import constants
from ..core.interfaces import LemmatizerInterface, LexicalDatabaseInterface, TokenizerInterface
from ..core.models import Feature, NGram, NTree, TypedFeature
from ..extraction.serialization import read_feature_file
from .tokenizers import IdentifierTokenizer, IdentityLemmatizer
from .lexical_database import WordNetDatabase


logger = logging.getLogger(__name__)


class SynonymTable:
    """Symmetric token-pair similarity scores at or above a threshold."""

    def __init__(self, threshold: float, scores: Optional[Dict[Tuple[str, str], float]] = None):
        self.threshold = threshold
        self._scores: Dict[Tuple[str, str], float] = {}
        for (a, b), score in (scores or {}).items():
            self.add(a, b, score)

    @staticmethod
    def key(a: str, b: str) -> Tuple[str, str]:
        return (a, b) if a <= b else (b, a)

    def add(self, a: str, b: str, score: float) -> None:
        """Store a pair; identity pairs and scores below threshold are ignored."""
        if a == b or score < self.threshold:
            return
        self._scores[self.key(a, b)] = min(float(score), 1.0)

    def get(self, a: str, b: str) -> float:
        """Similarity of two tokens: 1 for identity, 0 when no entry exists."""
        if a == b:
            return 1.0
        return self._scores.get(self.key(a, b), 0.0)

    def items(self):
        return self._scores.items()

    def __len__(self) -> int:
        return len(self._scores)

    def __contains__(self, pair) -> bool:
        return self.key(*pair) in self._scores


@dataclass
class NLPTables:
    """Caches produced by NLP precomputation, read-only during VSM build."""
    token_table: Dict[str, List[str]] = field(default_factory=dict)
    synonym_table: Optional[SynonymTable] = None

    def tokens(self, name: str) -> List[str]:
        tokens = self.token_table.get(name)
        if tokens is None:
            return [name] if name else []
        return tokens


def collect_names(features: Iterable[Feature]) -> Set[str]:
    """Distinct non-empty names of all typed features nested in the given features."""
    names: Set[str] = set()
    stack = list(features)
    while stack:
        feature = stack.pop()
        if isinstance(feature, TypedFeature):
            if feature.name:
                names.add(feature.name)
        elif isinstance(feature, NGram):
            stack.extend(feature.items)
        elif isinstance(feature, NTree):
            stack.append(feature.node)
            stack.extend(feature.children)
    return names


class NLPPreprocessor:
    """
    Builds the token table and the synonym table for a feature folder.

    The token table maps every raw name to its normalized tokens (split on
    identifier boundaries, lowercased and lemmatized). The synonym table
    holds the token pairs whose lexical similarity reaches the threshold.
    Both are rebuilt on every run.
    """

    def __init__(self,
                 tokenizer: Optional[TokenizerInterface] = None,
                 lemmatizer: Optional[LemmatizerInterface] = None,
                 lexical_database: Optional[LexicalDatabaseInterface] = None,
                 progress_interval: int = 1000):
        """
        Initialize the preprocessor.

        Args:
            tokenizer: Name tokenizer; identifier splitting by default
            lemmatizer: Lemmatizer for tokens; None leaves tokens untouched
            lexical_database: Source of word similarities; WordNet by default
            progress_interval: Log progress every N tokens of the pair loop
        """
        self.tokenizer = tokenizer or IdentifierTokenizer()
        self.lemmatizer = lemmatizer or IdentityLemmatizer()
        self._lexical_database = lexical_database
        self.progress_interval = progress_interval

    @property
    def lexical_database(self) -> LexicalDatabaseInterface:
        if self._lexical_database is None:
            self._lexical_database = WordNetDatabase()
        return self._lexical_database

    def normalize(self, name: str) -> List[str]:
        """Tokenize and lemmatize one raw name; falls back to the raw name."""
        tokens = self.tokenizer.normalize(self.tokenizer.tokenize(name))
        lemmas = [self.lemmatizer.lemmatize(token) for token in tokens]
        lemmas = [lemma for lemma in lemmas if lemma]
        return lemmas or [name]

    def precompute_token_table(self, feature_folder: str, serialization: str = "plain") -> Dict[str, List[str]]:
        """
        Scan all feature files and tokenize every distinct name.

        Raises:
            FileNotFoundError: If the feature folder does not exist.
        """
        if not os.path.isdir(feature_folder):
            raise FileNotFoundError(f"Feature folder not found: {feature_folder}")

        names: Set[str] = set()
        for filename in sorted(os.listdir(feature_folder)):
            if not filename.endswith(constants.FEATURE_FILE_SUFFIX):
                continue
            features = read_feature_file(os.path.join(feature_folder, filename), serialization)
            names.update(collect_names(features))

        token_table = {name: self.normalize(name) for name in sorted(names)}
        logger.info(f"Token table built for {len(token_table)} distinct names")
        return token_table

    def precompute_synonym_table(self,
                                 token_table: Dict[str, List[str]],
                                 threshold: Optional[float]) -> Optional[SynonymTable]:
        """
        Compare every unordered pair of distinct tokens.

        Args:
            token_table: Output of precompute_token_table
            threshold: Minimum similarity in (0, 1]; 1.0 keeps exact matches
                only; None disables synonym lookup (no table is built)
        """
        if threshold is None:
            logger.info("Synonym lookup disabled, no synonym table built")
            return None

        tokens = sorted({token for tokens in token_table.values() for token in tokens})
        known = getattr(self.lexical_database, 'known', None)
        if known is not None:
            # tokens without senses cannot produce synonym rows
            tokens = [token for token in tokens if known(token)]

        table = SynonymTable(threshold)
        start_time = time.time()
        for i, first in enumerate(tokens):
            for second in tokens[i + 1:]:
                score = self.lexical_database.similarity(first, second)
                if score >= threshold:
                    table.add(first, second, score)
            if (i + 1) % self.progress_interval == 0:
                logger.info(f"Synonym precomputation {i + 1}/{len(tokens)} tokens")

        logger.info(f"Synonym table built: {len(table)} pairs over {len(tokens)} tokens "
                    f"(threshold {threshold}) in {time.time() - start_time:.2f} seconds")
        return table

    def precompute(self, feature_folder: str, serialization: str, threshold: Optional[float]) -> NLPTables:
        token_table = self.precompute_token_table(feature_folder, serialization)
        synonym_table = self.precompute_synonym_table(token_table, threshold)
        return NLPTables(token_table=token_table, synonym_table=synonym_table)
