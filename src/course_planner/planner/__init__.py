"""
Planner subsystem.

Components:
- models.py: Course / Unit / Task / Exam data structures (pydantic)
- course_tree.py: structural mutations over the course list
- task_state.py: completed set + completion history + undo stack
- api.py: operations that coordinate both managers on an AppState
- backup.py / reports.py / progress.py: export-import, reports, statistics
"""
