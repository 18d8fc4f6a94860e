"""Path extraction over loosely shaped JSON.

A candidate is ``(root, path)``; path steps are mapping keys or sequence indexes.
``pick`` walks its candidates in order and returns the first value that is present
(not ``None``, not a blank string) and survives the coercer; later candidates are
never consulted once one wins.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any, cast

if TYPE_CHECKING:
    from collections.abc import Callable

type PathStep = str | int
type Path = tuple[PathStep, ...]
type Candidate = tuple[object, Path]


def dig(root: object, path: Path) -> Any | None:
    current: object = root
    for step in path:
        if current is None:
            return None
        if isinstance(step, int):
            if not isinstance(current, Sequence) or isinstance(current, (str, bytes)):
                return None
            items = cast(Sequence[object], current)
            if not -len(items) <= step < len(items):
                return None
            current = items[step]
        else:
            if not isinstance(current, Mapping):
                return None
            current = cast(Mapping[str, object], current).get(step)
    return current


def is_present(value: object) -> bool:
    if value is None:
        return False
    return not (isinstance(value, str) and not value.strip())


def first_present(*candidates: Candidate) -> Any | None:
    for root, path in candidates:
        value = dig(root, path)
        if is_present(value):
            return value
    return None


def pick[T](coerce: Callable[[object], T | None], *candidates: Candidate) -> T | None:
    for root, path in candidates:
        value = dig(root, path)
        if not is_present(value):
            continue
        coerced = coerce(value)
        if coerced is not None:
            return coerced
    return None


def as_str(value: object) -> str | None:
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def as_float(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return result if math.isfinite(result) else None


def as_int(value: object) -> int | None:
    result = as_float(value)
    if result is None or not result.is_integer():
        return None
    return int(result)


def as_bool(value: object) -> bool | None:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def as_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def as_object(value: object) -> dict[str, Any] | None:
    if isinstance(value, Mapping):
        return dict(cast(Mapping[str, Any], value))
    return None


def as_objects(value: object) -> list[dict[str, Any]]:
    """Keep the mapping entries of a list; anything that is not a list yields ``[]``."""

    if not isinstance(value, list):
        return []
    return [dict(item) for item in cast(list[object], value) if isinstance(item, Mapping)]


def as_str_tuple(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(text for item in cast(list[object], value) if (text := as_str(item)))


def find_player(claim: object, role: str) -> dict[str, Any] | None:
    """Return the claim participant holding ``role`` (claimant, respondent, mediator)."""

    for player in as_objects(dig(claim, ("players",))):
        if player.get("role") == role:
            return player
    return None


__all__ = [
    "Candidate",
    "Path",
    "as_bool",
    "as_datetime",
    "as_float",
    "as_int",
    "as_object",
    "as_objects",
    "as_str",
    "as_str_tuple",
    "dig",
    "find_player",
    "first_present",
    "is_present",
    "pick",
]
