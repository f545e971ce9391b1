"""Name tokenization, lemmatization and synonym precomputation."""

from .tokenizers import (
    BaseTokenizer,
    SimpleTokenizer,
    IdentifierTokenizer,
    IdentityLemmatizer,
    NLTKLemmatizer,
    SpacyLemmatizer,
    create_tokenizer,
    create_lemmatizer,
    normalize_name
)
from .lexical_database import WordNetDatabase, FunctionLexicalDatabase
from .nlp_preprocessor import NLPPreprocessor, NLPTables, SynonymTable, collect_names

__all__ = [
    'BaseTokenizer',
    'SimpleTokenizer',
    'IdentifierTokenizer',
    'IdentityLemmatizer',
    'NLTKLemmatizer',
    'SpacyLemmatizer',
    'create_tokenizer',
    'create_lemmatizer',
    'normalize_name',
    'WordNetDatabase',
    'FunctionLexicalDatabase',
    'NLPPreprocessor',
    'NLPTables',
    'SynonymTable',
    'collect_names'
]
