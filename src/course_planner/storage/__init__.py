"""
Storage subsystem.

Components:
- backends.py: key-value media (memory, one-file-per-key, SQLite)
- scheduler.py: debounce timers (threading, asyncio)
- schemas.py: pydantic-backed validation for persisted slots
- durable.py: DurableStore, one validated + debounced slot
"""
