"""
Core type definitions for jsongraph.

Every model that crosses the persistence boundary serializes with camelCase
aliases (``documentId``, ``parentPath``, ``isLeaf`` ...) so the stored layout
stays readable by the rendering side, while Python code uses snake_case.
"""

from enum import StrEnum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

JsonValue = Union[None, bool, int, float, str, Dict[str, Any], List[Any]]


class SemanticType(StrEnum):
    """Refined classification of a JSON value beyond its raw kind."""
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    OBJECT = "object"
    ARRAY = "array"
    URL = "url"
    EMAIL = "email"
    UUID = "uuid"
    TIMESTAMP = "timestamp"
    DATE = "date"
    DATETIME = "datetime"
    HEX_COLOR = "hex-color"
    RGB_COLOR = "rgb-color"
    RGBA_COLOR = "rgba-color"
    VERSION = "version"
    SEMANTIC_VERSION = "semantic-version"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    BASE64 = "base64"
    PHONE = "phone"
    CREDIT_CARD = "credit-card"
    FILE_PATH = "file-path"
    DIRECTORY_PATH = "directory-path"


class NodeKind(StrEnum):
    """Shape of a materialized node."""
    OBJECT = "object"
    ARRAY = "array"
    PRIMITIVE = "primitive"

    @classmethod
    def of(cls, value: Any) -> "NodeKind":
        if isinstance(value, dict):
            return cls.OBJECT
        if isinstance(value, list):
            return cls.ARRAY
        return cls.PRIMITIVE


class Direction(StrEnum):
    """Growth axis of the tree layout."""
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class LevelDescriptor(_CamelModel):
    """
    One direct child of a container value.

    Never looks past one level: ``value`` is the raw child, ``child_count``
    is only the number of its own direct children.
    """
    key: str
    path: str
    parent_path: Optional[str] = None
    semantic_type: SemanticType
    value: Any = None
    is_leaf: bool
    child_count: Optional[int] = None


class LevelResult(_CamelModel):
    """Output of processing a single level."""
    descriptors: Tuple[LevelDescriptor, ...] = ()
    has_children: bool = False
    own_type: SemanticType


class Position(_CamelModel):
    x: float
    y: float


class GraphNode(_CamelModel):
    """
    A materialized vertex holding the one-level expansion of its value.

    ``position`` is transient layout output; the store itself never sets it.
    """
    id: str
    kind: NodeKind
    payload: Tuple[LevelDescriptor, ...] = ()
    parent_path: Optional[str] = None
    position: Optional[Position] = None

    def descriptor_for(self, key: str) -> Optional[LevelDescriptor]:
        """Find the payload descriptor for a direct child key."""
        for descriptor in self.payload:
            if descriptor.key == key:
                return descriptor
        return None

    def with_position(self, x: float, y: float) -> "GraphNode":
        return self.model_copy(update={"position": Position(x=x, y=y)})


class GraphEdge(_CamelModel):
    """Directed parent -> child connection created by an expansion."""
    id: str
    source: str
    target: str

    @staticmethod
    def make_id(source: str, target: str) -> str:
        return f"edge-{source}-{target}"


class GraphState(_CamelModel):
    """
    Immutable snapshot of one open document.

    Mutations build a new instance and the repository swaps it in whole,
    so readers never observe a node without its edge.
    """
    document_id: str
    raw_document: Any = None
    display_name: Optional[str] = None
    nodes: Tuple[GraphNode, ...] = ()
    edges: Tuple[GraphEdge, ...] = Field(default_factory=tuple)

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


class ContainerSize(_CamelModel):
    width: float
    height: float
