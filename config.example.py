# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Nothing here is imported at runtime; see src/course_planner/config.py for defaults.

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "PLANNER_APP_NAME": "App display name (default: planner).",
    "PLANNER_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Storage
    "PLANNER_DATA_DIR": "Local data directory for logs and storage (default: .local/planner).",
    "PLANNER_STORAGE_BACKEND": "file | sqlite | memory (default: file).",
    "PLANNER_STORAGE_PATH": (
        "Directory (file backend) or database file (sqlite backend) "
        "(default: <data_dir>/store or <data_dir>/planner.sqlite3)."
    ),
    "PLANNER_STORAGE_QUOTA_BYTES": "Total bytes the backend may hold, 0 = unlimited (default: 0).",
    "PLANNER_NAMESPACE": "Key prefix of the active profile, keys look like <ns>:courses (default: planner).",
    "PLANNER_WRITE_DEBOUNCE_MS": "Delay before a change is written to storage (default: 500).",
    # Planner behavior
    "PLANNER_UNDO_LIMIT": "How many completion changes /undo can revert (default: 20).",
    "PLANNER_SEED_ON_FIRST_RUN": "Start an empty namespace with the sample courses (true/false, default: true).",
    "PLANNER_PURGE_ORPHANS_ON_DELETE": (
        "Drop completion records of a deleted course's tasks (true/false, default: true)."
    ),
    "PLANNER_BACKUP_REMINDER_DAYS": "Remind to export after this many days without a backup (default: 7).",
}
