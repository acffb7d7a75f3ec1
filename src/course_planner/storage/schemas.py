# src/course_planner/storage/schemas.py

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from ..core.ports import Validation
from ..planner.models import Course

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _short_error(e: ValidationError) -> str:
    errs = e.errors()
    if not errs:
        return str(e)
    first = errs[0]
    loc = ".".join(str(p) for p in first.get("loc", ())) or "<root>"
    more = f" (+{len(errs) - 1} more)" if len(errs) > 1 else ""
    return f"{loc}: {first.get('msg', 'invalid')}{more}"


class PydanticSchema(Generic[T]):
    """
    Schema backed by a pydantic TypeAdapter.

    validate() takes parsed JSON (dicts/lists/str) and returns typed values.
    dump() produces the JSON-able form written to storage (camelCase keys,
    None fields omitted).
    """

    def __init__(self, tp: Any, name: str | None = None) -> None:
        self._adapter: TypeAdapter[T] = TypeAdapter(tp)
        self.name = name or getattr(tp, "__name__", str(tp))

    def validate(self, raw: Any) -> Validation[T]:
        try:
            return Validation(value=self._adapter.validate_python(raw))
        except ValidationError as e:
            return Validation(error=_short_error(e))

    def dump(self, value: T) -> Any:
        try:
            return self._adapter.dump_python(
                value, mode="json", by_alias=True, exclude_none=True, warnings=False
            )
        except PydanticSerializationError as e:
            raise ValueError(f"{self.name}: cannot serialize value: {e}") from e

    def __repr__(self) -> str:
        return f"PydanticSchema({self.name})"


COURSES = PydanticSchema[list[Course]](list[Course], name="courses")
COMPLETED_TASK_IDS = PydanticSchema[list[str]](list[str], name="completed-task-ids")
COMPLETION_HISTORY = PydanticSchema[dict[str, str]](dict[str, str], name="completion-history")
LAST_BACKUP = PydanticSchema[str | None](str | None, name="last-backup")
