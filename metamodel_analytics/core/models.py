"""Core data models for metamodel analytics."""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class SimpleType:
    """A bare type tag, used for the edges inside n-grams."""
    type: str

    @property
    def type_tag(self) -> str:
        return self.type

    def __str__(self) -> str:
        return self.type


@dataclass(frozen=True)
class TypedFeature:
    """A model element reduced to its type tag and (normalized) name."""
    type: str
    name: str = ""

    @property
    def type_tag(self) -> str:
        return self.type

    def __str__(self) -> str:
        return f"{self.type}:{self.name}"


@dataclass(frozen=True)
class NGram:
    """Ordered sequence of simple features (unigram, bigram, tree payload)."""
    items: Tuple[Union[SimpleType, TypedFeature], ...]

    def __post_init__(self):
        if not isinstance(self.items, tuple):
            object.__setattr__(self, 'items', tuple(self.items))
        if not self.items:
            raise ValueError("NGram must contain at least one feature")

    @property
    def n(self) -> int:
        return len(self.items)

    @property
    def type_tag(self) -> str:
        """Type tag of the first content position (edges are skipped)."""
        for item in self.items:
            if isinstance(item, TypedFeature):
                return item.type
        return self.items[0].type_tag

    def __getitem__(self, index):
        return self.items[index]

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        return " ".join(str(item) for item in self.items)


@dataclass(frozen=True)
class NTree:
    """Labeled ordered tree whose node payloads are n-grams."""
    node: NGram
    children: Tuple["NTree", ...] = ()

    def __post_init__(self):
        if not isinstance(self.children, tuple):
            object.__setattr__(self, 'children', tuple(self.children))

    @property
    def type_tag(self) -> str:
        return self.node.type_tag

    def size(self) -> int:
        """Number of nodes in the tree."""
        return 1 + sum(child.size() for child in self.children)


Feature = Union[SimpleType, TypedFeature, NGram, NTree]


@dataclass
class ModelElement:
    """An element of a loaded model graph."""
    id: str
    type: str
    name: str
    container: Optional[str] = None
    external: bool = False  # proxy for a reference into another model


@dataclass
class ModelEdge:
    """A labeled edge between two model elements."""
    source: str
    type: str
    target: str


@dataclass
class ModelGraph:
    """Typed object graph of a single model file."""
    name: str
    elements: List[ModelElement] = field(default_factory=list)
    edges: List[ModelEdge] = field(default_factory=list)

    def element_index(self) -> Dict[str, ModelElement]:
        return {element.id: element for element in self.elements}

    def edges_by_source(self) -> Dict[str, List[ModelEdge]]:
        """Outgoing edges per element id, in declaration order."""
        outgoing: Dict[str, List[ModelEdge]] = {}
        for edge in self.edges:
            outgoing.setdefault(edge.source, []).append(edge)
        return outgoing


@dataclass
class VSMResult:
    """Outcome of one VSM build."""
    tag: str
    matrix: object  # scipy.sparse.csr_matrix
    row_names: List[str]
    row_sizes: List[int]
    vocabulary: List[Feature]
    output_path: Optional[str] = None

    @property
    def shape(self) -> Tuple[int, int]:
        return (len(self.row_names), len(self.vocabulary))


@dataclass
class CloneReport:
    """Masked pairwise distances of a corpus and the clone groups they induce."""
    names: List[str]
    sizes: List[int]
    distances: object  # numpy.ndarray, rows and columns follow names
    groups: List[int]
    pairs: List[Tuple[str, str, float]] = field(default_factory=list)

    def clone_groups(self) -> List[List[str]]:
        """Groups holding more than one model, in order of first member."""
        members: Dict[int, List[str]] = {}
        for name, group in zip(self.names, self.groups):
            members.setdefault(group, []).append(name)
        return [names for names in members.values() if len(names) > 1]
