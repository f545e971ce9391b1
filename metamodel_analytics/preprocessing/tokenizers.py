"""Tokenizer and lemmatizer implementations for model element names."""

import re
import string
import logging
from typing import List, Optional

from ..core.interfaces import TokenizerInterface, LemmatizerInterface


logger = logging.getLogger(__name__)


class BaseTokenizer(TokenizerInterface):
    """Base tokenizer with common normalization functionality."""

    def __init__(self, remove_punctuation: bool = True, lowercase: bool = True):
        self.remove_punctuation = remove_punctuation
        self.lowercase = lowercase
        self.punctuation_pattern = re.compile(f'[{re.escape(string.punctuation)}]')
        self.whitespace_pattern = re.compile(r'\s+')

    def normalize(self, tokens: List[str]) -> List[str]:
        """Normalize tokens with common preprocessing steps."""
        normalized = []

        for token in tokens:
            if self.lowercase:
                token = token.lower()

            if self.remove_punctuation:
                token = self.punctuation_pattern.sub('', token)

            # Skip empty tokens
            if token.strip():
                normalized.append(token.strip())

        return normalized


class SimpleTokenizer(BaseTokenizer):
    """Simple whitespace-based tokenizer."""

    def tokenize(self, text: str) -> List[str]:
        """Tokenize text by splitting on whitespace."""
        text = self.whitespace_pattern.sub(' ', text.strip())
        return text.split()


class IdentifierTokenizer(BaseTokenizer):
    """
    Splits identifiers on camel-case boundaries, underscores and whitespace.

    ``OrderLineItem`` -> ``order line item``, ``HTTPServer`` -> ``http server``,
    ``max_size2`` -> ``max size 2``.
    """

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.boundaries = re.compile(
            r'(?<=[a-z0-9])(?=[A-Z])'        # orderLine
            r'|(?<=[A-Z])(?=[A-Z][a-z])'     # HTTPServer
            r'|(?<=[A-Za-z])(?=[0-9])'       # size2
            r'|(?<=[0-9])(?=[A-Za-z])'
        )
        self.separators = re.compile(r'[_\s\-.$]+')

    def tokenize(self, text: str) -> List[str]:
        text = self.boundaries.sub(' ', text)
        return [part for part in self.separators.split(text) if part]

    def split(self, text: str) -> List[str]:
        """Tokenize and normalize in one step."""
        return self.normalize(self.tokenize(text))


class IdentityLemmatizer(LemmatizerInterface):
    """Leaves tokens untouched (lemmatization disabled)."""

    def lemmatize(self, token: str) -> str:
        return token


class NLTKLemmatizer(LemmatizerInterface):
    """WordNet-based lemmatizer from NLTK."""

    def __init__(self):
        self._lemmatizer = None

    def _ensure_nltk_data(self):
        """Ensure required NLTK data is downloaded."""
        try:
            import nltk
            try:
                nltk.data.find('corpora/wordnet')
            except LookupError:
                nltk.download('wordnet', quiet=True)
        except ImportError:
            raise ImportError("NLTK is not installed. Install with: pip install nltk")

    @property
    def lemmatizer(self):
        if self._lemmatizer is None:
            self._ensure_nltk_data()
            from nltk.stem import WordNetLemmatizer
            self._lemmatizer = WordNetLemmatizer()
        return self._lemmatizer

    def lemmatize(self, token: str) -> str:
        # nouns dominate model vocabularies; verbs catch operation names
        lemma = self.lemmatizer.lemmatize(token, pos='n')
        if lemma == token:
            lemma = self.lemmatizer.lemmatize(token, pos='v')
        return lemma


class SpacyLemmatizer(LemmatizerInterface):
    """spaCy-based lemmatizer."""

    def __init__(self, model: str = "en_core_web_sm"):
        self.model_name = model
        self._nlp = None

    @property
    def nlp(self):
        """Lazy load spaCy model."""
        if self._nlp is None:
            try:
                import spacy
                self._nlp = spacy.load(self.model_name, disable=["parser", "ner"])
            except ImportError:
                raise ImportError("spaCy is not installed. Install with: pip install spacy")
            except OSError:
                raise OSError(f"spaCy model '{self.model_name}' not found. Install with: python -m spacy download {self.model_name}")
        return self._nlp

    def lemmatize(self, token: str) -> str:
        doc = self.nlp(token)
        return doc[0].lemma_.lower() if len(doc) else token


def create_tokenizer(tokenizer_type: str, **kwargs) -> TokenizerInterface:
    """Factory function to create tokenizer instances."""
    tokenizer_map = {
        'simple': SimpleTokenizer,
        'identifier': IdentifierTokenizer,
    }

    if tokenizer_type not in tokenizer_map:
        raise ValueError(f"Unknown tokenizer type: {tokenizer_type}. Available: {list(tokenizer_map.keys())}")

    return tokenizer_map[tokenizer_type](**kwargs)


def create_lemmatizer(lemmatizer_type: Optional[str], **kwargs) -> LemmatizerInterface:
    """Factory function to create lemmatizer instances; None disables lemmatization."""
    lemmatizer_map = {
        'nltk': NLTKLemmatizer,
        'spacy': SpacyLemmatizer,
    }

    if lemmatizer_type is None:
        return IdentityLemmatizer()
    if lemmatizer_type not in lemmatizer_map:
        raise ValueError(f"Unknown lemmatizer type: {lemmatizer_type}. Available: {list(lemmatizer_map.keys())}")

    return lemmatizer_map[lemmatizer_type](**kwargs)


_identifier_tokenizer = IdentifierTokenizer()


def normalize_name(name: str) -> str:
    """
    Lowercase normalized form of an element name, tokens joined by ``_``.

    Falls back to the raw name (whitespace replaced) when tokenization
    yields nothing.
    """
    tokens = _identifier_tokenizer.split(name)
    if not tokens:
        logger.debug(f"Name normalization failed for {name!r}, keeping raw name")
        return re.sub(r'\s+', '_', name.strip())
    return "_".join(tokens)
