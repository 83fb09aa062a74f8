"""Field coercion helpers that raise user-facing validation messages."""

from __future__ import annotations

from pydantic_core import PydanticCustomError


def custom_error(message: str) -> PydanticCustomError:
    """Build an error whose `msg` is exactly `message`."""
    return PydanticCustomError("value_error", message)


def required_text(
    value: object,
    *,
    max_length: int,
    required_message: str,
    too_long_message: str,
) -> str:
    """Trim a required string and enforce 1..max_length characters."""
    if not isinstance(value, str):
        raise custom_error(required_message)
    trimmed = value.strip()
    if not trimmed:
        raise custom_error(required_message)
    if len(trimmed) > max_length:
        raise custom_error(too_long_message)
    return trimmed


def optional_text(value: object, *, max_length: int | None, too_long_message: str) -> str | None:
    """Trim an optional string; blank becomes None."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise custom_error("Must be a string")
    trimmed = value.strip()
    if not trimmed:
        return None
    if max_length is not None and len(trimmed) > max_length:
        raise custom_error(too_long_message)
    return trimmed


def strict_int(value: object, *, message: str) -> int:
    """Accept JSON integers only (no bools, floats or numeric strings)."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise custom_error(message)
    return value


def choice_int(value: object, *, choices: tuple[int, ...], message: str) -> int:
    number = strict_int(value, message=message)
    if number not in choices:
        raise custom_error(message)
    return number


def query_int(
    value: object,
    *,
    name: str,
    minimum: int,
    maximum: int | None = None,
    minimum_message: str | None = None,
) -> int:
    """Coerce a query-string value into a bounded integer."""
    if isinstance(value, bool):
        raise custom_error(f"{name} must be an integer")
    if isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            raise custom_error(f"{name} must be an integer") from None
    elif isinstance(value, int):
        number = value
    else:
        raise custom_error(f"{name} must be an integer")
    if number < minimum:
        raise custom_error(minimum_message or f"{name} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise custom_error(f"{name} must be at most {maximum}")
    return number
