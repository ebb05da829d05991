"""Keyword-based task type classification."""

from __future__ import annotations

from aumai_smartrecommend.models import TaskType

__all__ = ["TASK_KEYWORDS", "detect_task_type"]

# Checked in order; the first list with a substring hit wins.
TASK_KEYWORDS: tuple[tuple[TaskType, tuple[str, ...]], ...] = (
    (
        TaskType.CODING,
        (
            "code",
            "coding",
            "programming",
            "develop",
            "implement",
            "function",
            "api",
            "algorithm",
            "debug",
            "test",
            "deploy",
        ),
    ),
    (
        TaskType.MATH,
        (
            "math",
            "mathematical",
            "calculate",
            "analysis",
            "analyze",
            "statistics",
            "data analysis",
            "statistical",
            "computation",
        ),
    ),
    (
        TaskType.DESIGN,
        (
            "design",
            "visual",
            "graphic",
            "ui",
            "ux",
            "interface",
            "prototype",
            "mockup",
            "wireframe",
        ),
    ),
    (
        TaskType.WRITING,
        (
            "write",
            "writing",
            "content",
            "document",
            "article",
            "blog",
            "copy",
            "text",
            "essay",
        ),
    ),
    (
        TaskType.COMMUNICATION,
        (
            "communication",
            "collaborate",
            "team",
            "meeting",
            "chat",
            "message",
            "email",
            "notification",
        ),
    ),
)


def detect_task_type(task_text: str) -> TaskType:
    """Classify *task_text* into a :class:`~aumai_smartrecommend.models.TaskType`.

    Matching is case-insensitive substring search, so ``"rebuild"`` counts as
    ``"ui"``.  Text that matches no list is :attr:`TaskType.GENERAL`.
    """
    text = task_text.lower()
    for task_type, keywords in TASK_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return task_type
    return TaskType.GENERAL
