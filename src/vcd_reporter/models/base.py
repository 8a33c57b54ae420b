from typing import Any

from pydantic import BaseModel, ConfigDict

from vcd_reporter.primitives import non_negative, to_int


class SnapshotModel(BaseModel):
    """Immutable input snapshot; unknown keys are ignored, camelCase or snake_case accepted."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)


def coerce_amount(value: Any) -> float:
    return non_negative(value)


def coerce_count(value: Any) -> int:
    return max(to_int(value, 0), 0)


def coerce_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return None
    return str(value)
