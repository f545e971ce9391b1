"""Configuration and parameter records."""

from .parameters import Parameters
from .configuration_manager import (
    ConfigurationManager,
    Configuration,
    PathsConfig,
    ExtractionConfig,
    NLPConfig,
    VSMConfig,
    ProcessingConfig,
    LoggingConfig
)

__all__ = [
    "Parameters",
    "ConfigurationManager",
    "Configuration",
    "PathsConfig",
    "ExtractionConfig",
    "NLPConfig",
    "VSMConfig",
    "ProcessingConfig",
    "LoggingConfig"
]
