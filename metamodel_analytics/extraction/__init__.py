"""Feature extraction and feature file formats."""

from .feature_extractor import FeatureExtractor, list_model_files
from .serialization import (
    format_feature,
    parse_plain_line,
    parse_json_line,
    read_feature_file,
    write_feature_file
)

__all__ = [
    'FeatureExtractor',
    'list_model_files',
    'format_feature',
    'parse_plain_line',
    'parse_json_line',
    'read_feature_file',
    'write_feature_file'
]
