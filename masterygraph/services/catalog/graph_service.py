"""
Knowledge graph catalog queries, enrollment and visualization.
"""
import logging
from typing import List, Optional

from masterygraph.api.mappers import map_enrollment, map_graph, map_graph_content
from masterygraph.api.models.requests import CreateGraphRequest
from masterygraph.core.api_client import LearningApiClient
from masterygraph.models.course_models import Enrollment, Graph
from masterygraph.models.graph_models import GraphContent, RenderGraph
from masterygraph.services.cache.query_cache import QueryCache
from masterygraph.services.graph.graph_assembler import assemble_graph

logger = logging.getLogger(__name__)

GRAPHS_KEY = ("graphs",)
MY_GRAPHS_KEY = ("myGraphs",)


def graph_key(graph_id: str) -> tuple:
    return ("graphs", graph_id)


def my_graph_key(graph_id: str) -> tuple:
    return ("myGraphs", graph_id)


def graph_content_key(graph_id: str, is_owner: bool = False) -> tuple:
    return ("myGraphContent" if is_owner else "graphContent", graph_id)


def knowledge_graph_key(graph_id: str, is_owner: bool = False) -> tuple:
    """Owner and learner visualizations are cached apart; both share the graph prefix."""
    key = ("knowledgeGraph", graph_id)
    return key + ("owner",) if is_owner else key


class GraphService:
    """Template and owned graphs, enrollment and the assembled knowledge graph."""

    def __init__(self, api: LearningApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_template_graphs(self) -> List[Graph]:
        return await self.cache.query(
            GRAPHS_KEY,
            self.api.get_template_graphs,
            select=lambda rows: [map_graph(row) for row in rows],
        )

    async def get_graph(self, graph_id: str) -> Graph:
        return await self.cache.query(
            graph_key(graph_id),
            lambda: self.api.get_graph(graph_id),
            select=map_graph,
        )

    async def list_my_graphs(self) -> List[Graph]:
        return await self.cache.query(
            MY_GRAPHS_KEY,
            self.api.get_my_graphs,
            select=lambda rows: [map_graph(row) for row in rows],
        )

    async def get_my_graph(self, graph_id: str) -> Graph:
        return await self.cache.query(
            my_graph_key(graph_id),
            lambda: self.api.get_my_graph(graph_id),
            select=map_graph,
        )

    async def get_knowledge_graph(self, graph_id: str, is_owner: bool = False) -> RenderGraph:
        """Fetch the visualization payload and assemble it for rendering."""
        return await self.cache.query(
            knowledge_graph_key(graph_id, is_owner),
            lambda: self.api.get_graph_visualization(graph_id, is_owner=is_owner),
            select=assemble_graph,
        )

    async def get_graph_content(self, graph_id: str, is_owner: bool = False) -> GraphContent:
        """Node outline with prerequisite and subtopic relationships."""
        return await self.cache.query(
            graph_content_key(graph_id, is_owner),
            lambda: self.api.get_graph_content(graph_id, is_owner=is_owner),
            select=map_graph_content,
        )

    async def enroll(self, graph_id: str) -> Enrollment:
        """
        Enroll in a template graph.

        Both the template list and the graph detail are patched in one cache
        write once the request succeeds; nothing is written on failure.
        """
        try:
            raw = await self.api.enroll_in_graph(graph_id)
        except Exception as e:
            logger.error(f"Failed to enroll in graph {graph_id}: {e}")
            raise
        logger.info(f"Enrollment successful for graph: {graph_id}")

        self.cache.patch_collection_and_detail(
            GRAPHS_KEY,
            graph_key(graph_id),
            matches=lambda graph: graph.graph_id == graph_id,
            patch=lambda graph: graph.enrolled(),
        )
        return map_enrollment(raw)

    async def create_graph(
        self,
        name: str,
        description: str = "",
        tags: Optional[List[str]] = None,
        is_public: bool = False,
    ) -> Graph:
        """Create an owned graph; graph lists are refetched on next read."""
        request = CreateGraphRequest(
            name=name,
            description=description,
            tags=tags or [],
            is_public=is_public,
        )
        raw = await self.api.create_graph(request)
        graph = map_graph(raw)
        logger.info(f"Created graph {graph.graph_id} ({graph.name})")

        self.cache.invalidate(GRAPHS_KEY)
        self.cache.invalidate(MY_GRAPHS_KEY)
        return graph
