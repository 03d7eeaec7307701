"""Employee task assignments mirrored on client and employee records."""

from .assignment_manager import AssignmentManager, AssignmentPair, parse_task

__all__ = [
    "AssignmentManager",
    "AssignmentPair",
    "parse_task",
]
