from .work import Work, WorkStatus
from .task import Task

__all__ = ["Work", "WorkStatus", "Task"]
