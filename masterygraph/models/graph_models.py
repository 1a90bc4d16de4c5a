"""
Data models for knowledge graphs and their render-ready form.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Set

from masterygraph.models.course_models import Graph


class EdgeType(Enum):
    """Relationship kinds between knowledge nodes."""
    PREREQUISITE = "IS_PREREQUISITE_FOR"
    SUBTOPIC = "HAS_SUBTOPIC"


class MasteryBucket(Enum):
    """Fixed mastery bands used for node coloring."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class KnowledgeNode:
    """Single concept in a knowledge graph"""
    id: str
    name: str
    description: str = ""
    mastery_score: float = 0.0  # 0.0-1.0


@dataclass(frozen=True)
class KnowledgeEdge:
    """Directed relationship between two nodes"""
    source_id: str
    target_id: str
    type: EdgeType


@dataclass
class KnowledgeGraph:
    """Node set plus edge list, possibly with dangling edges until closed"""
    nodes: Dict[str, KnowledgeNode] = field(default_factory=dict)
    edges: List[KnowledgeEdge] = field(default_factory=list)

    @property
    def node_ids(self) -> Set[str]:
        return set(self.nodes)

    def is_closed(self) -> bool:
        """True when no edge references a missing node."""
        ids = self.node_ids
        return all(e.source_id in ids and e.target_id in ids for e in self.edges)


@dataclass(frozen=True)
class RenderNode:
    """Node as handed to the force-layout renderer"""
    id: str
    name: str
    description: str
    mastery: float
    bucket: MasteryBucket
    color: str
    size: float
    link_count: int = 0
    is_hub: bool = False


@dataclass(frozen=True)
class RenderLink:
    """Edge as handed to the force-layout renderer"""
    source: str
    target: str
    type: EdgeType
    color: str


@dataclass
class RenderGraph:
    """Closed, render-ready graph"""
    nodes: List[RenderNode] = field(default_factory=list)
    links: List[RenderLink] = field(default_factory=list)

    @property
    def node_ids(self) -> Set[str]:
        return {n.id for n in self.nodes}

    @property
    def is_empty(self) -> bool:
        return not self.nodes


@dataclass(frozen=True)
class ContentNode:
    """Node as listed in a graph's content outline"""
    id: str
    name: str
    description: str = ""
    level: int = 0
    dependents_count: int = 0


@dataclass(frozen=True)
class ContentEdge:
    """Weighted relationship in a graph's content outline"""
    source_id: str
    target_id: str
    type: EdgeType
    weight: float = 1.0


@dataclass
class GraphContent:
    """Full outline of one graph: its summary, nodes and relationships"""
    graph: Graph
    nodes: List[ContentNode] = field(default_factory=list)
    edges: List[ContentEdge] = field(default_factory=list)

    @property
    def prerequisites(self) -> List[ContentEdge]:
        return [e for e in self.edges if e.type is EdgeType.PREREQUISITE]

    @property
    def subtopics(self) -> List[ContentEdge]:
        return [e for e in self.edges if e.type is EdgeType.SUBTOPIC]
