"""
Composition root for the masterygraph client.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from masterygraph.core.api_client import LearningApiClient
from masterygraph.core.config import LOG_LEVEL, api_root
from masterygraph.core.config_validator import ConfigurationError, config_validator
from masterygraph.core.errors import MasteryGraphError
from masterygraph.services.cache.query_cache import QueryCache
from masterygraph.services.catalog.course_service import CourseService
from masterygraph.services.catalog.graph_service import GraphService
from masterygraph.services.quiz.quiz_service import QuizService
from masterygraph.services.session.question_session import QuestionSession

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """One API client and one cache shared by every service."""
    api: LearningApiClient
    cache: QueryCache
    courses: CourseService
    graphs: GraphService
    quizzes: QuizService

    def question_session(self, graph_id: str, is_owner: bool = False) -> QuestionSession:
        return QuestionSession(self.api, self.cache, graph_id, is_owner=is_owner)

    async def aclose(self) -> None:
        await self.api.aclose()


def create_app(
    client: Optional[httpx.AsyncClient] = None,
    base_url: Optional[str] = None,
    cache: Optional[QueryCache] = None,
) -> AppContext:
    """Wire the services together; pass ``client`` to reuse a transport."""
    api = LearningApiClient(base_url=base_url, client=client)
    cache = cache or QueryCache()
    return AppContext(
        api=api,
        cache=cache,
        courses=CourseService(api, cache),
        graphs=GraphService(api, cache),
        quizzes=QuizService(api, cache),
    )


def configure_logging() -> None:
    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def main() -> int:
    """Validate configuration and print the template graph catalog."""
    configure_logging()
    logger.info("Validating configuration...")

    try:
        config_validator.raise_if_invalid(check_connectivity=True)
    except ConfigurationError as e:
        logger.error(f"Configuration errors detected: {e}")
        return 1

    logger.info(f"Using learning API at {api_root()}")
    app = create_app()
    try:
        graphs = await app.graphs.list_template_graphs()
    except MasteryGraphError as e:
        logger.error(f"Could not load graphs: {e}")
        return 1
    finally:
        await app.aclose()

    for graph in graphs:
        marker = "*" if graph.is_enrolled else " "
        print(f"[{marker}] {graph.name} ({graph.node_count} nodes) {graph.graph_id}")
    return 0


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
