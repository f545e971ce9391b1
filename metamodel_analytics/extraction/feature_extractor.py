"""Feature extraction from loaded model graphs."""

import os
import shutil
import logging
import time
from typing import Dict, List, Optional

from ..core import constants
from ..core.interfaces import ModelLoaderInterface
from ..core.models import (
    Feature, ModelElement, ModelGraph, NGram, NTree, SimpleType, TypedFeature
)
from ..loading.ecore_loader import EcoreLoader
from ..preprocessing.tokenizers import normalize_name
from .serialization import write_feature_file


logger = logging.getLogger(__name__)


class FeatureExtractor:
    """
    Turns model graphs into per-fragment feature lists.

    A fragment is either the whole model (scope ``model``) or a single
    package with its direct content (scope ``fragment``). Each element is
    encoded according to the unit (``name``, ``type``, ``name-type``) and
    arranged according to the structure (``unigram``, ``bigram``, ``ntree``).
    Traversal follows the declared element order of the model, so extraction
    is deterministic.
    """

    def __init__(self,
                 loader: Optional[ModelLoaderInterface] = None,
                 normalize_names: bool = True,
                 progress_interval: int = 100):
        self.loader = loader or EcoreLoader()
        self.normalize_names = normalize_names
        self.progress_interval = progress_interval

    def extract(self, model: ModelGraph, scope: str, unit: str, structure: str) -> Dict[str, List[Feature]]:
        """
        Extract features for every fragment of a model.

        Returns:
            Mapping of fragment key to its feature list, in fragment order
        """
        if scope not in constants.SCOPES:
            raise ValueError(f"Unknown scope: {scope}")
        if unit not in constants.UNITS:
            raise ValueError(f"Unknown unit: {unit}")
        if structure not in constants.STRUCTURES:
            raise ValueError(f"Unknown structure: {structure}")

        elements = model.element_index()
        outgoing = model.edges_by_source()

        feature_map: Dict[str, List[Feature]] = {}
        for key, members in self._fragments(model, scope, elements):
            if key in feature_map:
                suffix = 1
                while f"{key}_{suffix}" in feature_map:
                    suffix += 1
                logger.warning(f"Duplicate fragment key {key} in {model.name}, using {key}_{suffix}")
                key = f"{key}_{suffix}"

            if structure == "unigram":
                features = self._unigrams(members, unit)
            elif structure == "bigram":
                features = self._bigrams(members, unit, elements, outgoing)
            else:
                features = self._trees(members, unit, elements, outgoing)
            feature_map[key] = features

        return feature_map

    def _fragments(self, model: ModelGraph, scope: str, elements: Dict[str, ModelElement]):
        members = [element for element in model.elements if not element.external]
        if scope == "model":
            yield model.name, members
            return

        by_package: Dict[str, List[ModelElement]] = {}
        package_order: List[ModelElement] = []
        for element in members:
            if element.type == constants.EPACKAGE:
                package_order.append(element)
                by_package.setdefault(element.id, []).append(element)
            else:
                package = self._owning_package(element, elements)
                if package is not None:
                    by_package.setdefault(package, []).append(element)

        for package in package_order:
            yield f"{model.name}-{self._qualified_name(package, elements)}", by_package[package.id]

    def _owning_package(self, element: ModelElement, elements: Dict[str, ModelElement]) -> Optional[str]:
        container = element.container
        while container is not None:
            parent = elements[container]
            if parent.type == constants.EPACKAGE:
                return parent.id
            container = parent.container
        return None

    def _qualified_name(self, package: ModelElement, elements: Dict[str, ModelElement]) -> str:
        names = [package.name]
        container = package.container
        while container is not None:
            names.append(elements[container].name)
            container = elements[container].container
        return ".".join(reversed(names))

    def encode_unit(self, element: ModelElement, unit: str) -> Optional[TypedFeature]:
        """Encode an element; None when the unit has nothing to say about it."""
        if unit == "type":
            return TypedFeature(element.type, "")

        name = normalize_name(element.name) if self.normalize_names else element.name.strip()
        if not name and unit == "name":
            return None
        return TypedFeature(element.type, name)

    def _unigrams(self, members: List[ModelElement], unit: str) -> List[Feature]:
        features: List[Feature] = []
        for element in members:
            encoded = self.encode_unit(element, unit)
            if encoded is not None:
                features.append(NGram((encoded,)))
        return features

    def _bigrams(self, members, unit, elements, outgoing) -> List[Feature]:
        features: List[Feature] = []
        for element in members:
            source = self.encode_unit(element, unit)
            if source is None:
                continue
            for edge in outgoing.get(element.id, []):
                target = self.encode_unit(elements[edge.target], unit)
                if target is not None:
                    features.append(NGram((source, SimpleType(edge.type), target)))
        return features

    def _trees(self, members, unit, elements, outgoing) -> List[Feature]:
        features: List[Feature] = []
        for element in members:
            if element.type not in constants.TREE_ROOT_TYPES:
                continue
            root = self.encode_unit(element, unit)
            if root is None:
                continue
            children = []
            for edge in outgoing.get(element.id, []):
                child = self.encode_unit(elements[edge.target], unit)
                if child is not None:
                    children.append(NTree(NGram((SimpleType(edge.type), child))))
            features.append(NTree(NGram((root,)), tuple(children)))
        return features

    @staticmethod
    def effective_size(features: List[Feature], structure: str) -> int:
        """
        Size of a fragment as seen by the minimum-size filter.

        unigram: feature count; bigram: feature count + 1;
        ntree: sum of tree sizes - tree count + 1.
        """
        count = len(features)
        if structure == "unigram":
            return count
        if structure == "bigram":
            return count + 1
        if structure == "ntree":
            return sum(feature.size() for feature in features) - count + 1
        raise ValueError(f"Size-based filtering not defined for {structure}")

    def write_features(self,
                       feature_map: Dict[str, List[Feature]],
                       folder: str,
                       min_size: int,
                       structure: str) -> List[str]:
        """
        Write one ``<key>.features`` file per fragment that is large enough.

        Returns:
            Keys of the fragments that were written
        """
        os.makedirs(folder, exist_ok=True)
        written = []
        for key, features in feature_map.items():
            size = self.effective_size(features, structure)
            if size < min_size:
                logger.info(f"Not enough model elements (min:{min_size}, got {size}), skipping {key}")
                continue
            write_feature_file(os.path.join(folder, key + constants.FEATURE_FILE_SUFFIX), features)
            written.append(key)
        return written

    def extract_folder(self,
                       data_folder: str,
                       feature_folder: str,
                       scope: str,
                       unit: str,
                       structure: str,
                       min_size: int = 1,
                       extension: str = constants.MODEL_FILE_EXTENSION) -> List[str]:
        """
        Extract features for every model file in a folder.

        The feature folder is recreated from scratch. Malformed model files
        are skipped with an error log.

        Raises:
            FileNotFoundError: If the data folder does not exist.

        Returns:
            Keys of all written fragments
        """
        if not os.path.isdir(data_folder):
            logger.error(f"Folder {os.path.abspath(data_folder)} not found")
            raise FileNotFoundError(f"Model folder not found: {data_folder}")

        model_files = list_model_files(data_folder, extension)

        if os.path.isdir(feature_folder):
            shutil.rmtree(feature_folder)
        os.makedirs(feature_folder, exist_ok=True)

        logger.info(f"Starting feature extraction ({scope}-{unit}-{structure}) for {len(model_files)} model files")
        start_time = time.time()
        written: List[str] = []

        for index, filename in enumerate(model_files, start=1):
            path = os.path.join(data_folder, filename)
            logger.debug(f"Processing file: {filename}")
            try:
                model = self.loader.load(path)
            except (OSError, ValueError) as e:
                logger.error(f"Skipping malformed model {filename}: {e}")
                continue

            feature_map = self.extract(model, scope, unit, structure)
            written.extend(self.write_features(feature_map, feature_folder, min_size, structure))

            if index % self.progress_interval == 0:
                logger.info(f"Extracted {index}/{len(model_files)} model files")

        logger.info(f"Feature extraction finished: {len(written)} fragments in {time.time() - start_time:.2f} seconds")
        return written


def list_model_files(folder: str, extension: str = constants.MODEL_FILE_EXTENSION) -> List[str]:
    """Model file names in lexicographic order, hidden and OS metadata files excluded."""
    names = []
    for name in os.listdir(folder):
        if name.startswith(".") or "DS_Store" in name or name.startswith("__MACOSX"):
            continue
        if name.lower().endswith(extension.lower()) and os.path.isfile(os.path.join(folder, name)):
            names.append(name)
    return sorted(names)
