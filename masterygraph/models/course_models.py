"""
Data models for course and graph summaries.
"""
from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Course:
    """Course summary as listed in the catalog"""
    course_id: str
    name: str
    description: str = ""
    node_count: int = 0
    is_enrolled: bool = False
    is_primary: bool = False

    def enrolled(self) -> "Course":
        return replace(self, is_enrolled=True)


@dataclass(frozen=True)
class Graph:
    """Knowledge graph summary (template or owned graph)"""
    graph_id: str
    name: str
    node_count: int = 0
    is_enrolled: bool = False
    is_primary: bool = False  # template graphs are the primary catalog entries
    description: str = ""
    owner_id: Optional[str] = None

    def enrolled(self) -> "Graph":
        return replace(self, is_enrolled=True)


@dataclass(frozen=True)
class Enrollment:
    """Result of a successful enrollment"""
    enrollment_id: str
    student_id: str
    target_id: str  # course_id or graph_id
    enrollment_date: Optional[str] = None
