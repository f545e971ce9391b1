"""Loader turning Ecore (XMI) files into typed model graphs."""

import logging
import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from ..core import constants
from ..core.interfaces import ModelLoaderInterface
from ..core.models import ModelGraph, ModelElement, ModelEdge


logger = logging.getLogger(__name__)

XSI_TYPE = "{http://www.w3.org/2001/XMLSchema-instance}type"

# containment tag -> element type, for tags whose type is not given by xsi:type
_FIXED_TAG_TYPES = {
    "eSubpackages": constants.EPACKAGE,
    "eOperations": constants.EOPERATION,
    "eParameters": constants.EPARAMETER,
    "eLiterals": constants.EENUM_LITERAL,
}

_TYPED_TAGS = ("eClassifiers", "eStructuralFeatures")


def _tag_local(tag: str) -> str:
    return tag.split("}")[-1] if "}" in tag else tag


def _references(value: str) -> List[str]:
    """
    Reference tokens of an ``eSuperTypes``/``eExceptions`` attribute.

    Cross-document references read ``ecore:EClass other.ecore#//Name``;
    the ``prefix:EType`` token names the target's type, not a target.
    """
    return [token for token in value.split() if "#" in token or ":" not in token]


class EcoreLoader(ModelLoaderInterface):
    """
    Parses ``.ecore`` files with ElementTree.

    Elements are collected in document order. Containment becomes a
    ``contains`` edge, ``eSuperTypes`` a ``has-supertype`` edge and
    ``eExceptions`` a ``throws`` edge. References that cannot be resolved
    inside the file are represented by external ``EClass`` proxies.
    """

    def load(self, path: str) -> ModelGraph:
        """
        Load a model file.

        Raises:
            FileNotFoundError: If the file does not exist.
            ValueError: If the file is not well-formed Ecore.
        """
        try:
            tree = ET.parse(path)
        except ET.ParseError as e:
            raise ValueError(f"Malformed model file {path}: {e}")

        root = tree.getroot()
        packages = self._root_packages(root)
        if not packages:
            raise ValueError(f"No EPackage found in {path}")

        name = path.replace("\\", "/").rsplit("/", 1)[-1].rsplit(".", 1)[0]
        graph = ModelGraph(name=name)
        pending: List[tuple] = []  # (source id, edge type, raw reference)
        self._ids = set()

        for package in packages:
            self._visit(package, constants.EPACKAGE, "/", None, graph, pending)

        self._resolve_references(graph, pending)
        logger.debug(f"Loaded {name}: {len(graph.elements)} elements, {len(graph.edges)} edges")
        return graph

    def _root_packages(self, root: ET.Element) -> List[ET.Element]:
        if _tag_local(root.tag) == "EPackage":
            return [root]
        # xmi:XMI wrapper holding several packages
        return [child for child in root if _tag_local(child.tag) == "EPackage"]

    def _element_type(self, node: ET.Element) -> Optional[str]:
        tag = _tag_local(node.tag)
        if tag in _FIXED_TAG_TYPES:
            return _FIXED_TAG_TYPES[tag]
        if tag in _TYPED_TAGS:
            xsi_type = node.attrib.get(XSI_TYPE, "")
            type_tag = xsi_type.split(":")[-1]
            if type_tag in constants.ELEMENT_TYPES:
                return type_tag
            # eClassifiers without xsi:type default to EClass in Ecore
            if tag == "eClassifiers" and not xsi_type:
                return constants.ECLASS
        return None

    def _visit(self, node: ET.Element, type_tag: str, parent_path: str,
               container: Optional[str], graph: ModelGraph, pending: List[tuple]) -> None:
        name = node.attrib.get("name", "")
        element_id = f"{parent_path}/{name}"
        # sibling elements may share a name (e.g. overloaded operations)
        if element_id in self._ids:
            suffix = 1
            while f"{element_id}#{suffix}" in self._ids:
                suffix += 1
            element_id = f"{element_id}#{suffix}"
        self._ids.add(element_id)

        graph.elements.append(ModelElement(id=element_id, type=type_tag, name=name, container=container))
        if container is not None:
            graph.edges.append(ModelEdge(source=container, type=constants.CONTAINS, target=element_id))

        for reference in _references(node.attrib.get("eSuperTypes", "")):
            pending.append((element_id, constants.HAS_SUPERTYPE, reference))
        for reference in _references(node.attrib.get("eExceptions", "")):
            pending.append((element_id, constants.THROWS, reference))

        for child in node:
            child_type = self._element_type(child)
            if child_type is not None:
                self._visit(child, child_type, element_id, element_id, graph, pending)

    def _resolve_references(self, graph: ModelGraph, pending: List[tuple]) -> None:
        by_path: Dict[str, str] = {}
        by_name: Dict[str, str] = {}
        for element in graph.elements:
            if element.type in (constants.ECLASS, constants.EDATATYPE, constants.EENUM):
                # ids look like "//pkg/Class"; references are relative to the root package
                segments = element.id.strip("/").split("/")
                by_path.setdefault("/".join(segments[1:]), element.id)
                by_name.setdefault(element.name, element.id)

        externals: Dict[str, str] = {}
        for source, edge_type, reference in pending:
            path = reference.split("#")[-1].lstrip("/")
            target = by_path.get(path) or by_name.get(path.rsplit("/", 1)[-1])
            if target is None:
                proxy_name = path.rsplit("/", 1)[-1] or reference
                target = externals.get(proxy_name)
                if target is None:
                    target = f"external:{proxy_name}"
                    externals[proxy_name] = target
                    graph.elements.append(ModelElement(id=target, type=constants.ECLASS,
                                                       name=proxy_name, external=True))
            graph.edges.append(ModelEdge(source=source, type=edge_type, target=target))
