"""Course planner: durable course/task state with completion tracking and undo."""

__version__ = "0.1.0"
