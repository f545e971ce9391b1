"""Configuration management for metamodel analytics."""

import os
import yaml
import json
from typing import Dict, Any, Optional
from dataclasses import dataclass, asdict
from dotenv import load_dotenv

from ..core import constants


@dataclass
class PathsConfig:
    """Input and output folders."""
    data_folder: str = "data"
    feature_folder: str = "features"
    vsm_folder: str = "vsm"
    results_folder: str = "results"


@dataclass
class ExtractionConfig:
    """Feature extraction configuration."""
    scope: str = "model"  # model, fragment
    unit: str = "name"  # name, type, name-type
    structure: str = "unigram"  # unigram, bigram, ntree
    min_size: int = 1
    model_extension: str = constants.MODEL_FILE_EXTENSION


@dataclass
class NLPConfig:
    """Tokenization and lexical database configuration."""
    tokenize: bool = True
    lemmatize: bool = True
    lemmatizer: str = "nltk"  # nltk, spacy
    spacy_model: str = "en_core_web_sm"
    similarity_measure: str = "wup"  # wup, path


@dataclass
class VSMConfig:
    """Defaults for the vector space model build."""
    goal: str = "cluster"  # cluster, clone
    comparison_cache_size: int = 100000
    n_clusters: int = 2
    linkage_method: str = "average"
    clone_threshold: float = 0.3  # masked distance at or below which two models are clones


@dataclass
class ProcessingConfig:
    """Processing configuration."""
    progress_interval: int = 100


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


@dataclass
class Configuration:
    """Main configuration class."""
    paths: PathsConfig = None
    extraction: ExtractionConfig = None
    nlp: NLPConfig = None
    vsm: VSMConfig = None
    processing: ProcessingConfig = None
    logging: LoggingConfig = None

    def __post_init__(self):
        if self.paths is None:
            self.paths = PathsConfig()
        if self.extraction is None:
            self.extraction = ExtractionConfig()
        if self.nlp is None:
            self.nlp = NLPConfig()
        if self.vsm is None:
            self.vsm = VSMConfig()
        if self.processing is None:
            self.processing = ProcessingConfig()
        if self.logging is None:
            self.logging = LoggingConfig()


class ConfigurationManager:
    """Manages configuration loading, validation, and persistence."""

    def __init__(self, config_path: Optional[str] = None):
        """Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default.
        """
        self.config_path = config_path or "config/default.yaml"
        self.config = Configuration()

        # Load environment variables
        load_dotenv()

        if os.path.exists(self.config_path):
            self.load_from_file(self.config_path)

        self._load_from_environment()

    def load_from_file(self, path: str) -> None:
        """Load configuration from YAML or JSON file.

        Raises:
            FileNotFoundError: If configuration file doesn't exist.
            ValueError: If configuration file is invalid.
        """
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                if path.endswith('.yaml') or path.endswith('.yml'):
                    data = yaml.safe_load(f)
                elif path.endswith('.json'):
                    data = json.load(f)
                else:
                    raise ValueError(f"Unsupported configuration file format: {path}")

            self._update_config_from_dict(data or {})
            self.config_path = path

        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ValueError(f"Invalid configuration file format: {e}")

    def save_to_file(self, path: str) -> None:
        """Save configuration to YAML or JSON file."""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        config_dict = asdict(self.config)

        with open(path, 'w', encoding='utf-8') as f:
            if path.endswith('.yaml') or path.endswith('.yml'):
                yaml.dump(config_dict, f, default_flow_style=False, indent=2)
            elif path.endswith('.json'):
                json.dump(config_dict, f, indent=2)
            else:
                raise ValueError(f"Unsupported configuration file format: {path}")

    def _load_from_environment(self) -> None:
        """Load configuration from environment variables."""
        if os.getenv('METAMODEL_DATA_FOLDER'):
            self.config.paths.data_folder = os.getenv('METAMODEL_DATA_FOLDER')
        if os.getenv('METAMODEL_FEATURE_FOLDER'):
            self.config.paths.feature_folder = os.getenv('METAMODEL_FEATURE_FOLDER')
        if os.getenv('METAMODEL_VSM_FOLDER'):
            self.config.paths.vsm_folder = os.getenv('METAMODEL_VSM_FOLDER')
        if os.getenv('METAMODEL_RESULTS_FOLDER'):
            self.config.paths.results_folder = os.getenv('METAMODEL_RESULTS_FOLDER')

        if os.getenv('SPACY_MODEL'):
            self.config.nlp.spacy_model = os.getenv('SPACY_MODEL')

        if os.getenv('LOG_LEVEL'):
            self.config.logging.level = os.getenv('LOG_LEVEL')

    def _update_config_from_dict(self, data: Dict[str, Any]) -> None:
        """Update configuration from dictionary."""
        if 'paths' in data:
            self.config.paths = PathsConfig(**data['paths'])

        if 'extraction' in data:
            self.config.extraction = ExtractionConfig(**data['extraction'])

        if 'nlp' in data:
            self.config.nlp = NLPConfig(**data['nlp'])

        if 'vsm' in data:
            self.config.vsm = VSMConfig(**data['vsm'])

        if 'processing' in data:
            self.config.processing = ProcessingConfig(**data['processing'])

        if 'logging' in data:
            self.config.logging = LoggingConfig(**data['logging'])

    def load_task(self, root: str, hyper_path: Optional[str] = None) -> None:
        """Point the data folder at a task root and read its cluster count.

        The root holds ``X_attrs.json`` naming the model subfolder; the
        hyperparameter file carries ``{"hyper": {"n_clusters": N}}``.
        """
        descriptor = os.path.join(root, constants.TASK_DESCRIPTOR_FILE)
        if not os.path.exists(descriptor):
            raise FileNotFoundError(f"Task descriptor not found: {descriptor}")

        with open(descriptor, 'r', encoding='utf-8') as f:
            attrs = json.load(f)
        if 'xmi_folder' not in attrs:
            raise ValueError(f"Task descriptor {descriptor} has no 'xmi_folder' entry")
        self.config.paths.data_folder = os.path.join(root, attrs['xmi_folder'])

        if hyper_path:
            if not os.path.exists(hyper_path):
                raise FileNotFoundError(f"Hyperparameter file not found: {hyper_path}")
            with open(hyper_path, 'r', encoding='utf-8') as f:
                hyper = json.load(f)
            try:
                self.config.vsm.n_clusters = int(hyper['hyper']['n_clusters'])
            except (KeyError, TypeError, ValueError) as e:
                raise ValueError(f"Invalid hyperparameter file {hyper_path}: {e}")

    def validate_config(self) -> bool:
        """Validate configuration settings.

        Raises:
            ValueError: If configuration is invalid with detailed error message.
        """
        errors = []

        extraction = self.config.extraction
        if extraction.scope not in constants.SCOPES:
            errors.append(f"Invalid scope. Must be one of: {list(constants.SCOPES)}")
        if extraction.unit not in constants.UNITS:
            errors.append(f"Invalid unit. Must be one of: {list(constants.UNITS)}")
        if extraction.structure not in constants.STRUCTURES:
            errors.append(f"Invalid structure. Must be one of: {list(constants.STRUCTURES)}")
        if extraction.min_size < 0:
            errors.append("Minimum fragment size must not be negative")

        valid_lemmatizers = ["nltk", "spacy"]
        if self.config.nlp.lemmatizer not in valid_lemmatizers:
            errors.append(f"Invalid lemmatizer. Must be one of: {valid_lemmatizers}")

        valid_measures = ["wup", "path"]
        if self.config.nlp.similarity_measure not in valid_measures:
            errors.append(f"Invalid similarity measure. Must be one of: {valid_measures}")

        if self.config.vsm.goal not in constants.GOALS:
            errors.append(f"Invalid goal. Must be one of: {list(constants.GOALS)}")
        if self.config.vsm.n_clusters <= 0:
            errors.append("Cluster count must be positive")
        if self.config.vsm.comparison_cache_size <= 0:
            errors.append("Comparison cache size must be positive")
        if not 0.0 <= self.config.vsm.clone_threshold <= 1.0:
            errors.append("Clone threshold must be between 0 and 1")

        if self.config.processing.progress_interval <= 0:
            errors.append("Progress interval must be positive")

        if errors:
            raise ValueError("Configuration validation failed:\n" + "\n".join(f"- {error}" for error in errors))

        return True

    def get_config(self) -> Configuration:
        return self.config

    def reset_to_defaults(self) -> None:
        """Reset configuration to default values."""
        self.config = Configuration()
        self._load_from_environment()

    def get_summary(self) -> str:
        """Get configuration summary as string."""
        summary = []
        summary.append("Metamodel Analytics Configuration")
        summary.append("=" * 40)
        summary.append(f"Data Folder: {self.config.paths.data_folder}")
        summary.append(f"Feature Folder: {self.config.paths.feature_folder}")
        summary.append(f"VSM Folder: {self.config.paths.vsm_folder}")
        summary.append(f"Results Folder: {self.config.paths.results_folder}")
        summary.append(f"Goal: {self.config.vsm.goal}")
        summary.append(f"Extraction: {self.config.extraction.scope}-{self.config.extraction.unit}-{self.config.extraction.structure}")
        summary.append(f"Min Fragment Size: {self.config.extraction.min_size}")
        summary.append(f"Lemmatizer: {self.config.nlp.lemmatizer if self.config.nlp.lemmatize else 'disabled'}")
        summary.append(f"Clusters: {self.config.vsm.n_clusters}")
        summary.append(f"Clone Threshold: {self.config.vsm.clone_threshold}")

        return "\n".join(summary)
