"""Lexical database access for semantic word similarity."""

import logging
from typing import Callable, Dict, List

from ..core.interfaces import LexicalDatabaseInterface


logger = logging.getLogger(__name__)


class WordNetDatabase(LexicalDatabaseInterface):
    """
    WordNet similarity through NLTK.

    The similarity of two words is the best score over their noun senses
    (verb senses as fallback). Words without senses score 0.
    """

    def __init__(self, measure: str = "wup"):
        if measure not in ("wup", "path"):
            raise ValueError(f"Unknown similarity measure: {measure}")
        self.measure = measure
        self._wordnet = None
        self._synsets: Dict[str, List] = {}

    @property
    def wordnet(self):
        """Lazy load the WordNet corpus, downloading it if needed."""
        if self._wordnet is None:
            try:
                import nltk
                try:
                    nltk.data.find('corpora/wordnet')
                except LookupError:
                    nltk.download('wordnet', quiet=True)
                from nltk.corpus import wordnet
                self._wordnet = wordnet
            except ImportError:
                raise ImportError("NLTK is not installed. Install with: pip install nltk")
            logger.info("WordNet loaded")
        return self._wordnet

    def synsets(self, word: str) -> List:
        if word not in self._synsets:
            senses = self.wordnet.synsets(word, pos=self.wordnet.NOUN)
            if not senses:
                senses = self.wordnet.synsets(word, pos=self.wordnet.VERB)
            self._synsets[word] = senses
        return self._synsets[word]

    def similarity(self, word1: str, word2: str) -> float:
        if word1 == word2:
            return 1.0
        senses1 = self.synsets(word1)
        senses2 = self.synsets(word2)
        if not senses1 or not senses2:
            return 0.0

        best = 0.0
        for sense1 in senses1:
            for sense2 in senses2:
                if sense1.pos() != sense2.pos():
                    continue
                if self.measure == "wup":
                    score = sense1.wup_similarity(sense2)
                else:
                    score = sense1.path_similarity(sense2)
                if score is not None and score > best:
                    best = score
        return min(best, 1.0)

    def known(self, word: str) -> bool:
        return bool(self.synsets(word))


class FunctionLexicalDatabase(LexicalDatabaseInterface):
    """Adapts a plain ``similarity(a, b)`` callable."""

    def __init__(self, function: Callable[[str, str], float]):
        self.function = function

    def similarity(self, word1: str, word2: str) -> float:
        if word1 == word2:
            return 1.0
        return float(self.function(word1, word2) or 0.0)
