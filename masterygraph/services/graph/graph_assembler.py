"""
Knowledge graph assembly for the force-layout renderer.

Turns a visualization payload into a closed RenderGraph: nodes colored by
mastery bucket, and only those edges whose endpoints both exist.
"""
import logging
from collections import Counter
from typing import Any, Mapping, Union

from pydantic import BaseModel

from masterygraph.api.mappers import map_knowledge_graph
from masterygraph.models.graph_models import (
    EdgeType,
    KnowledgeGraph,
    MasteryBucket,
    RenderGraph,
    RenderLink,
    RenderNode,
)

logger = logging.getLogger(__name__)

# Bucket lower bounds are inclusive: 0.33 is medium, 0.66 is high
LOW_MASTERY_LIMIT = 0.33
HIGH_MASTERY_LIMIT = 0.66

MASTERY_COLORS = {
    MasteryBucket.LOW: "#4a4a4a",  # gray, not yet mastered
    MasteryBucket.MEDIUM: "#fbbf24",  # amber, in progress
    MasteryBucket.HIGH: "#50fa7b",  # green, mastered
}

EDGE_COLORS = {
    EdgeType.PREREQUISITE: "#f472b6",
    EdgeType.SUBTOPIC: "#53dfdd",
}

HUB_LINK_RATIO = 0.5

GraphPayload = Union[Mapping[str, Any], BaseModel, KnowledgeGraph]


def mastery_bucket(score: float) -> MasteryBucket:
    """Map a mastery score onto its fixed band."""
    if score < LOW_MASTERY_LIMIT:
        return MasteryBucket.LOW
    if score < HIGH_MASTERY_LIMIT:
        return MasteryBucket.MEDIUM
    return MasteryBucket.HIGH


def mastery_color(score: float) -> str:
    return MASTERY_COLORS[mastery_bucket(score)]


def node_size(mastery: float, link_count: int) -> float:
    """Better-known and better-connected nodes draw larger."""
    return 6 + mastery * 8 + min(link_count * 1.5, 10)


def close_graph(graph: KnowledgeGraph) -> KnowledgeGraph:
    """Return a copy of ``graph`` without dangling edges."""
    node_ids = graph.node_ids
    edges = []
    for edge in graph.edges:
        if edge.source_id in node_ids and edge.target_id in node_ids:
            edges.append(edge)
        else:
            logger.debug(f"Dropping dangling edge {edge.source_id}->{edge.target_id}")
    dropped = len(graph.edges) - len(edges)
    if dropped:
        logger.info(f"Dropped {dropped} dangling edge(s) from knowledge graph")
    return KnowledgeGraph(nodes=dict(graph.nodes), edges=edges)


def build_knowledge_graph(payload: GraphPayload) -> KnowledgeGraph:
    """Map a payload to a KnowledgeGraph whose edges all reference known nodes."""
    graph = payload if isinstance(payload, KnowledgeGraph) else map_knowledge_graph(payload)
    return close_graph(graph)


def assemble_graph(payload: GraphPayload) -> RenderGraph:
    """
    Build the render-ready graph.

    Args:
        payload: Raw ``{nodes, edges}`` mapping, GraphVisualization model,
            or an already mapped KnowledgeGraph

    Returns:
        RenderGraph whose link endpoints are a subset of its node ids
    """
    graph = build_knowledge_graph(payload)

    link_counts: Counter = Counter()
    for edge in graph.edges:
        link_counts[edge.source_id] += 1
        link_counts[edge.target_id] += 1
    max_links = max(link_counts.values(), default=0) or 1

    nodes = []
    for node in graph.nodes.values():
        count = link_counts[node.id]
        bucket = mastery_bucket(node.mastery_score)
        nodes.append(RenderNode(
            id=node.id,
            name=node.name,
            description=node.description,
            mastery=node.mastery_score,
            bucket=bucket,
            color=MASTERY_COLORS[bucket],
            size=node_size(node.mastery_score, count),
            link_count=count,
            is_hub=count > max_links * HUB_LINK_RATIO,
        ))

    links = [
        RenderLink(
            source=edge.source_id,
            target=edge.target_id,
            type=edge.type,
            color=EDGE_COLORS[edge.type],
        )
        for edge in graph.edges
    ]

    return RenderGraph(nodes=nodes, links=links)
