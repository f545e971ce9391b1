"""Abstract interfaces for extensibility and dependency injection."""

from abc import ABC, abstractmethod
from typing import List

from .models import ModelGraph


class TokenizerInterface(ABC):
    """Abstract interface for tokenizers."""

    @abstractmethod
    def tokenize(self, text: str) -> List[str]:
        """Tokenize text into list of tokens."""
        pass

    @abstractmethod
    def normalize(self, tokens: List[str]) -> List[str]:
        """Normalize tokens (lowercase, punctuation removal, etc.)."""
        pass


class LemmatizerInterface(ABC):
    """Abstract interface for lemmatizers."""

    @abstractmethod
    def lemmatize(self, token: str) -> str:
        """Return the lemma of a single lowercase token."""
        pass


class LexicalDatabaseInterface(ABC):
    """Abstract interface for word-sense databases."""

    @abstractmethod
    def similarity(self, word1: str, word2: str) -> float:
        """Semantic similarity of two words in [0, 1]; 0 when unknown."""
        pass


class ModelLoaderInterface(ABC):
    """Abstract interface for model file loaders."""

    @abstractmethod
    def load(self, path: str) -> ModelGraph:
        """Load a model file into a typed object graph."""
        pass
