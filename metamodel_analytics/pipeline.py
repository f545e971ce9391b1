"""Main pipeline orchestrator for metamodel analytics."""

import os
import logging
import time
from typing import Optional, Dict, Any, List

from .config.configuration_manager import ConfigurationManager, Configuration
from .config.parameters import Parameters
from .core import constants
from .core.interfaces import LexicalDatabaseInterface
from .core.models import CloneReport, VSMResult
from .extraction.feature_extractor import FeatureExtractor
from .preprocessing.nlp_preprocessor import NLPPreprocessor, NLPTables
from .preprocessing.tokenizers import create_lemmatizer, create_tokenizer
from .preprocessing.lexical_database import WordNetDatabase
from .vsm.vsm_builder import VSMBuilder
from .analysis.clustering import HierarchicalClusterer, publish_predictions
from .analysis.clone_detection import CloneDetector


logger = logging.getLogger(__name__)


CLUSTER_SYNONYM_THRESHOLD = 80


class ModelAnalyticsPipeline:
    """
    Orchestrates extraction, NLP precomputation, VSM construction and
    clustering over a folder of metamodels.
    """

    def __init__(self,
                 config_path: Optional[str] = None,
                 config: Optional[Configuration] = None,
                 lexical_database: Optional[LexicalDatabaseInterface] = None):
        """
        Initialize the pipeline.

        Args:
            config_path: Path to configuration file
            config: Pre-configured Configuration object (overrides config_path)
            lexical_database: Word similarity source; WordNet when omitted
        """
        if config is not None:
            self.config_manager = ConfigurationManager()
            self.config_manager.config = config
        else:
            self.config_manager = ConfigurationManager(config_path)

        self.config = self.config_manager.get_config()
        self.config_manager.validate_config()

        self._lexical_database = lexical_database
        self.extractor: Optional[FeatureExtractor] = None
        self.preprocessor: Optional[NLPPreprocessor] = None
        self.builder: Optional[VSMBuilder] = None
        self._initialized = False

        logger.info("ModelAnalyticsPipeline initialized with configuration")
        logger.info(self.config_manager.get_summary())

    def _initialize_pipeline(self) -> None:
        """Create all pipeline components if not already initialized."""
        if self._initialized:
            return

        nlp = self.config.nlp
        processing = self.config.processing
        try:
            self.extractor = FeatureExtractor(progress_interval=processing.progress_interval)

            lemmatizer_kwargs = {'model': nlp.spacy_model} if nlp.lemmatizer == "spacy" else {}
            self.preprocessor = NLPPreprocessor(
                tokenizer=create_tokenizer("identifier" if nlp.tokenize else "simple"),
                lemmatizer=create_lemmatizer(nlp.lemmatizer if nlp.lemmatize else None, **lemmatizer_kwargs),
                lexical_database=self._lexical_database or WordNetDatabase(measure=nlp.similarity_measure),
                progress_interval=processing.progress_interval,
            )
            logger.info(f"NLP preprocessor initialized (lemmatizer: {nlp.lemmatizer if nlp.lemmatize else 'none'})")

            self.builder = VSMBuilder(
                feature_folder=self.config.paths.feature_folder,
                vsm_folder=self.config.paths.vsm_folder,
                cache_size=self.config.vsm.comparison_cache_size,
                progress_interval=processing.progress_interval,
            )
            self._initialized = True
            logger.info("Pipeline initialization completed successfully")
        except ValueError as e:
            logger.error(f"Failed to initialize pipeline: {e}")
            raise RuntimeError(f"Pipeline initialization failed: {e}")

    def extract_features(self,
                         scope: Optional[str] = None,
                         unit: Optional[str] = None,
                         structure: Optional[str] = None) -> List[str]:
        """Turn every model of the data folder into feature files."""
        self._initialize_pipeline()
        extraction = self.config.extraction
        return self.extractor.extract_folder(
            data_folder=self.config.paths.data_folder,
            feature_folder=self.config.paths.feature_folder,
            scope=scope or extraction.scope,
            unit=unit or extraction.unit,
            structure=structure or extraction.structure,
            min_size=extraction.min_size,
            extension=extraction.model_extension,
        )

    def precompute_nlp(self, structure: Optional[str] = None, threshold: Optional[int] = None) -> NLPTables:
        """
        Build token and synonym tables over the current feature folder.

        Args:
            structure: Feature structure, decides the feature file format
            threshold: Synonym threshold in percent; None skips the synonym table
        """
        self._initialize_pipeline()
        structure = structure or self.config.extraction.structure
        serialization = "json" if structure == "ntree" else "plain"
        return self.preprocessor.precompute(
            self.config.paths.feature_folder,
            serialization,
            None if threshold is None else threshold / 100.0,
        )

    def clustering_parameters(self, unit: str, structure: str) -> Parameters:
        return Parameters(
            scope=self.config.extraction.scope,
            unit=unit,
            structure=structure,
            weight="w1",
            idf="norm-log",
            type_match="relaxed",
            synonym="reduced",
            synonym_threshold=CLUSTER_SYNONYM_THRESHOLD,
            ngram_comparison="fixed",
            context_match="strict",
            frequency="sum",
            vsm_mode="quadratic",
        )

    def clone_parameters(self, unit: str, structure: str) -> Dict[str, Parameters]:
        """Parameter records of the two clone-detection matrices, keyed by tag."""
        full = Parameters(
            scope=self.config.extraction.scope,
            unit=unit,
            structure=structure,
            weight="w1",
            idf="none",
            type_match="relaxed",
            synonym="reduced",
            synonym_threshold=CLUSTER_SYNONYM_THRESHOLD,
            ngram_comparison="fixed",
            context_match="strict" if structure == "unigram" else "linear",
            frequency="sum",
            vsm_mode="quadratic",
        )
        mask = full.with_options(
            weight="raw",
            type_match="strict",
            synonym="none",
            synonym_threshold=None,
            context_match="strict",
            vsm_mode="linear",
        )
        return {"cloneFull": full, "cloneMask": mask}

    def build_vsm_for_clustering(self,
                                 unit: Optional[str] = None,
                                 structure: Optional[str] = None,
                                 nlp_tables: Optional[NLPTables] = None) -> VSMResult:
        """Build ``vsm-cluster.csv`` and ``names.csv``."""
        self._initialize_pipeline()
        unit = unit or self.config.extraction.unit
        structure = structure or self.config.extraction.structure
        params = self.clustering_parameters(unit, structure)

        if nlp_tables is None:
            nlp_tables = self.precompute_nlp(structure, params.synonym_threshold)

        result = self.builder.build(params, "cluster", nlp_tables)
        self.builder.write_names(result)
        return result

    def build_vsm_for_clone_detection(self,
                                      unit: Optional[str] = None,
                                      structure: Optional[str] = None,
                                      nlp_tables: Optional[NLPTables] = None) -> Dict[str, VSMResult]:
        """Build ``vsm-cloneFull.csv``, ``vsm-cloneMask.csv``, ``sizes.csv`` and ``names.csv``."""
        self._initialize_pipeline()
        unit = unit or self.config.extraction.unit
        structure = structure or self.config.extraction.structure
        parameters = self.clone_parameters(unit, structure)

        if nlp_tables is None:
            nlp_tables = self.precompute_nlp(structure, parameters["cloneFull"].synonym_threshold)

        results = {}
        for tag, params in parameters.items():
            results[tag] = self.builder.build(params, tag, nlp_tables)

        full = results["cloneFull"]
        self.builder.write_sizes(full)
        self.builder.write_names(full)
        return results

    def cluster(self) -> List[int]:
        """Cluster ``vsm-cluster.csv`` into ``clusterLabels.csv`` in the results folder."""
        clusterer = HierarchicalClusterer(
            n_clusters=self.config.vsm.n_clusters,
            method=self.config.vsm.linkage_method,
        )
        return clusterer.cluster_folder(self.config.paths.vsm_folder, "cluster", self.config.paths.results_folder)

    def detect_clones(self) -> CloneReport:
        """Compare the clone matrices into ``clonePairs.csv`` and ``cloneGroups.csv`` in the results folder."""
        detector = CloneDetector(
            threshold=self.config.vsm.clone_threshold,
            method=self.config.vsm.linkage_method,
        )
        return detector.detect_folder(self.config.paths.vsm_folder, self.config.paths.results_folder)

    def run(self, goal: Optional[str] = None) -> Dict[str, Any]:
        """
        Run the complete pipeline for one goal.

        Args:
            goal: 'cluster' or 'clone'; defaults to the configured goal

        Returns:
            Dictionary containing all pipeline results

        Raises:
            RuntimeError: If a phase fails on missing input or output errors.
        """
        goal = goal or self.config.vsm.goal
        if goal not in constants.GOALS:
            raise ValueError(f"Unknown goal: {goal}. Must be one of: {list(constants.GOALS)}")

        self._initialize_pipeline()
        start_time = time.time()
        extraction = self.config.extraction
        logger.info(f"Starting {goal} pipeline")

        try:
            logger.info("Step 1: Extracting features")
            fragments = self.extract_features()
            logger.info(f"Extracted {len(fragments)} fragments")

            logger.info("Step 2: Precomputing NLP tables")
            nlp_tables = self.precompute_nlp(extraction.structure, CLUSTER_SYNONYM_THRESHOLD)

            logger.info("Step 3: Building vector space model")
            results: Dict[str, Any] = {'goal': goal, 'fragments': fragments}
            if goal == "cluster":
                vsm = self.build_vsm_for_clustering(extraction.unit, extraction.structure, nlp_tables)
                results['vsm'] = {'cluster': vsm}

                logger.info("Step 4: Clustering")
                results['labels'] = self.cluster()
            else:
                results['vsm'] = self.build_vsm_for_clone_detection(extraction.unit, extraction.structure, nlp_tables)

                logger.info("Step 4: Detecting clones")
                results['clones'] = self.detect_clones()

        except (OSError, ValueError) as e:
            logger.error(f"Pipeline failed: {e}")
            raise RuntimeError(f"Pipeline failed: {e}")

        results['processing_time_seconds'] = time.time() - start_time
        logger.info(f"Pipeline completed successfully in {results['processing_time_seconds']:.2f} seconds")
        return results

    def run_task(self, root: str, hyper_path: Optional[str] = None) -> str:
        """
        Cluster the models of a task root and publish ``y_pred.json`` there.

        Returns:
            Path of the written predictions file
        """
        try:
            self.config_manager.load_task(root, hyper_path)
        except (OSError, ValueError) as e:
            logger.error(f"Invalid task {root}: {e}")
            raise RuntimeError(f"Invalid task: {e}")

        self.run("cluster")
        labels_path = os.path.join(self.config.paths.results_folder, constants.CLUSTER_LABELS_FILE)
        return publish_predictions(labels_path, root)

    def get_pipeline_status(self) -> Dict[str, Any]:
        """Current configuration and component state."""
        return {
            'initialized': self._initialized,
            'configuration': {
                'data_folder': self.config.paths.data_folder,
                'feature_folder': self.config.paths.feature_folder,
                'vsm_folder': self.config.paths.vsm_folder,
                'results_folder': self.config.paths.results_folder,
                'goal': self.config.vsm.goal,
                'extraction': f"{self.config.extraction.scope}-{self.config.extraction.unit}-"
                              f"{self.config.extraction.structure}",
            },
            'components': {
                'extractor': self.extractor is not None,
                'preprocessor': self.preprocessor is not None,
                'builder': self.builder is not None,
            }
        }
