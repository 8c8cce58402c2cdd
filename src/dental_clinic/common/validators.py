from __future__ import annotations

from typing import Any, Mapping

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name}이(가) 올바르지 않습니다")
    return value.strip()


def require_min_length(value: str, field_name: str, min_len: int) -> str:
    if value is None or len(value) < min_len:
        raise ValidationError(f"{field_name}은(는) 최소 {min_len}자 이상이어야 합니다")
    return value


def require_non_negative(value, field_name: str) -> int:
    try:
        number = int(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name}은(는) 숫자여야 합니다")
    if number < 0:
        raise ValidationError(f"{field_name}은(는) 0 이상이어야 합니다")
    return number


def require_month(year, month) -> tuple[int, int]:
    try:
        year, month = int(year), int(month)
    except (TypeError, ValueError):
        raise ValidationError("연도와 월을 확인해주세요")
    if not 1 <= month <= 12:
        raise ValidationError("월은 1~12 사이여야 합니다")
    if year < 2000:
        raise ValidationError("연도를 확인해주세요")
    return year, month


def as_flag(data: Mapping[str, Any], key: str, default: bool) -> bool:
    """Checkbox-style value: bools as-is, "1"/"true"/"yes"/"on" strings as True."""
    value = data.get(key, default)
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)
