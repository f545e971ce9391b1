"""Vector-space model construction."""

from .weighting import WEIGHT_TABLES, TypeWeighter, compute_idf, document_frequencies, scale_columns
from .vsm_builder import VSMBuilder, Vocabulary
from . import matrix_io

__all__ = [
    'WEIGHT_TABLES',
    'TypeWeighter',
    'compute_idf',
    'document_frequencies',
    'scale_columns',
    'VSMBuilder',
    'Vocabulary',
    'matrix_io'
]
