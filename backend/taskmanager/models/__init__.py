"""Model exports for SQLModel table metadata registration."""

from taskmanager.models.ai_interactions import AIDecision, AIInteraction
from taskmanager.models.lists import TaskList
from taskmanager.models.profiles import Profile
from taskmanager.models.tasks import Task, TaskPriority, TaskStatus
from taskmanager.models.users import User

__all__ = [
    "AIDecision",
    "AIInteraction",
    "Profile",
    "Task",
    "TaskList",
    "TaskPriority",
    "TaskStatus",
    "User",
]
