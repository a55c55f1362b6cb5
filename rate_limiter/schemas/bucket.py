"""Pydantic schema for persisted bucket state."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

logger = logging.getLogger(__name__)


class BucketSnapshot(BaseModel):
    """Fill level and drain timestamp stored under a bucket key.

    Capacity and rate are deliberately absent: they come from the caller's
    configuration, so changing a limit takes effect on the next check.
    """

    drips: float = Field(
        0.0, ge=0, description="Fill level in hit units at the time of `timer`."
    )
    timer: float = Field(
        0.0, ge=0, description="Unix seconds of the last drain computation."
    )


def parse_snapshot(value: Any) -> BucketSnapshot | None:
    """Validate a raw stored value into a snapshot.

    Args:
        value: Whatever the store returned (usually a dict, possibly None).

    Returns:
        The snapshot, or None when the value is absent or malformed.
    """

    if value is None:
        return None
    if isinstance(value, BucketSnapshot):
        return value
    try:
        return BucketSnapshot.model_validate(value)
    except ValidationError as exc:
        logger.debug(
            "snapshot.discarded",
            extra={"reason": "malformed", "error_count": exc.error_count()},
        )
        return None
