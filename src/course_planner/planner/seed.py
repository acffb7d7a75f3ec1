# src/course_planner/planner/seed.py

"""First-run seed data (shipped when nothing is stored yet)."""

from __future__ import annotations

from .models import Course

SEED_COURSES: list[dict] = [
    {
        "id": "diff-eq",
        "code": "285",
        "title": "Differential Equations",
        "color": "bg-blue-500",
        "customColor": "#3b82f6",
        "bgGradient": "from-blue-500 to-cyan-400",
        "exams": [
            {"id": "285-midterm", "title": "Midterm", "date": "2025-12-15", "time": "15:20"},
            {"id": "285-final", "title": "Final", "date": "2026-01-06", "time": "13:30"},
        ],
        "units": [
            {
                "id": "285-u1",
                "title": "1. Basic Definitions",
                "tasks": [
                    {"id": "285-1-1", "text": "Understand the differential equation concept", "initialChecked": True},
                    {"id": "285-1-2", "text": "Review independent and dependent variables", "initialChecked": True},
                    {"id": "285-1-3", "text": "Grasp the goal: finding solutions for the equation"},
                ],
            },
            {
                "id": "285-u2",
                "title": "2. First Order Equations",
                "tasks": [
                    {"id": "285-2-1", "text": "Separable equations: structure and solution algorithm"},
                    {"id": "285-2-2", "text": "Linear equations: integrating factor method"},
                    {"id": "285-2-3", "text": "Exact equations: test for exactness"},
                ],
            },
        ],
    },
    {
        "id": "lin-alg",
        "code": "221",
        "title": "Linear Algebra",
        "color": "bg-purple-500",
        "bgGradient": "from-purple-500 to-pink-400",
        "exams": [{"id": "221-final", "title": "Final", "date": "2026-01-09"}],
        "units": [
            {
                "id": "221-u1",
                "title": "1. Systems of Linear Equations",
                "tasks": [
                    {"id": "221-1-1", "text": "Gaussian elimination"},
                    {"id": "221-1-2", "text": "Row echelon and reduced row echelon form"},
                ],
            },
            {
                "id": "221-u2",
                "title": "2. Vector Spaces",
                "tasks": [
                    {"id": "221-2-1", "text": "Subspaces, span and linear independence"},
                    {"id": "221-2-2", "text": "Basis and dimension"},
                ],
            },
        ],
    },
]


def seed_courses() -> list[Course]:
    return [Course.model_validate(c) for c in SEED_COURSES]


def initial_completed_task_ids(courses: list[Course]) -> list[str]:
    """Ids of seed tasks flagged initialChecked."""
    return [t.id for c in courses for t in c.iter_tasks() if t.initial_checked]
