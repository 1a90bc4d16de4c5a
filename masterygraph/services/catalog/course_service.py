"""
Course catalog queries and enrollment.
"""
import logging
from typing import List

from masterygraph.api.mappers import map_course, map_enrollment
from masterygraph.core.api_client import LearningApiClient
from masterygraph.models.course_models import Course, Enrollment
from masterygraph.services.cache.query_cache import QueryCache

logger = logging.getLogger(__name__)

COURSES_KEY = ("courses",)


def course_key(course_id: str) -> tuple:
    return ("courses", course_id)


class CourseService:
    """Reads courses through the shared cache and keeps it coherent on enrollment."""

    def __init__(self, api: LearningApiClient, cache: QueryCache):
        self.api = api
        self.cache = cache

    async def list_courses(self) -> List[Course]:
        return await self.cache.query(
            COURSES_KEY,
            self.api.get_courses,
            select=lambda rows: [map_course(row) for row in rows],
        )

    async def get_course(self, course_id: str) -> Course:
        return await self.cache.query(
            course_key(course_id),
            lambda: self.api.get_course(course_id),
            select=map_course,
        )

    async def enroll(self, course_id: str) -> Enrollment:
        """
        Enroll in ``course_id``.

        On success the course list and the course detail are both marked
        enrolled in one cache write. On failure the cache is left untouched
        and the TransportError propagates.
        """
        try:
            raw = await self.api.enroll_in_course(course_id)
        except Exception as e:
            logger.error(f"Failed to enroll in course {course_id}: {e}")
            raise
        logger.info(f"Enrollment successful for course: {course_id}")

        self.cache.patch_collection_and_detail(
            COURSES_KEY,
            course_key(course_id),
            matches=lambda course: course.course_id == course_id,
            patch=lambda course: course.enrolled(),
        )
        return map_enrollment(raw)
