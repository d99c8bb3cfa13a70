"""Input validation rules for client records."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

from agent_crm.models.client import IMPORTANCE_LABELS, TELECOM_PROVIDERS, ClientEditForm

PHONE_PATTERN = re.compile(r"^(01[016789])-?(\d{3,4})-?(\d{4})$")
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@(?:[A-Za-z0-9-]+\.)+[A-Za-z]{2,}$")
HEX_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")
ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}")

HEIGHT_RANGE = (100, 250)
WEIGHT_RANGE = (30, 200)


@dataclass
class ValidationResult:
    is_valid: bool
    errors: list[str]


def validate_required_text(value: str, field_name: str, max_length: int | None = None) -> str:
    """Validate non-empty text fields."""
    normalized = (value or "").strip()
    if not normalized:
        raise ValueError(f"{field_name}을(를) 입력해주세요")
    if max_length is not None and len(normalized) > max_length:
        raise ValueError(f"{field_name}은(는) {max_length}자 이내로 입력해주세요")
    return normalized


def validate_max_length(value: str, field_name: str, max_length: int) -> str:
    normalized = (value or "").strip()
    if len(normalized) > max_length:
        raise ValueError(f"{field_name}은(는) {max_length}자 이내로 입력해주세요")
    return normalized


def validate_phone(phone: str) -> str:
    """Validate Korean mobile numbers, hyphens optional."""
    normalized = (phone or "").strip()
    if normalized and not PHONE_PATTERN.match(normalized):
        raise ValueError("올바른 전화번호 형식이 아닙니다 (예: 010-1234-5678)")
    return normalized


def validate_email(email: str) -> str:
    normalized = (email or "").strip()
    if normalized and not EMAIL_PATTERN.match(normalized):
        raise ValueError("올바른 이메일 형식이 아닙니다")
    return normalized


def _parse_number(value: str) -> float | None:
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def validate_optional_range(value: str, bounds: tuple[int, int], message: str) -> str:
    """Validate an optional numeric field that must fall inside ``bounds``."""
    normalized = (value or "").strip()
    if not normalized:
        return ""
    number = _parse_number(normalized)
    if number is None or number < bounds[0] or number > bounds[1]:
        raise ValueError(message)
    return normalized


def validate_importance(importance: str) -> str:
    if importance not in IMPORTANCE_LABELS:
        raise ValueError("중요도는 high, medium, low 중 하나여야 합니다")
    return importance


def validate_optional_choice(value: str, choices: tuple[str, ...], message: str) -> str:
    normalized = (value or "").strip()
    if normalized and normalized not in choices:
        raise ValueError(message)
    return normalized


def validate_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValueError("예/아니오 값이어야 합니다")
    return value


def validate_hex_color(color: str) -> str:
    normalized = (color or "").strip()
    if not HEX_COLOR_PATTERN.match(normalized):
        raise ValueError("색상은 #RRGGBB 형식이어야 합니다")
    return normalized.upper()


def validate_iso_date(value: str, field_name: str) -> str:
    """Validate a YYYY-MM-DD (optionally with time) date string."""
    normalized = validate_required_text(value, field_name)
    if not ISO_DATE_PATTERN.match(normalized):
        raise ValueError(f"{field_name} 형식은 YYYY-MM-DD 이어야 합니다")
    try:
        date.fromisoformat(normalized[:10])
    except ValueError as error:
        raise ValueError(f"{field_name}이(가) 유효한 날짜가 아닙니다") from error
    return normalized


# field key, accessor, validator
CLIENT_FORM_RULES: list[tuple[str, Callable[[ClientEditForm], Any], Callable[[Any], Any]]] = [
    ("fullName", lambda f: f.full_name, lambda v: validate_required_text(v, "고객명", 50)),
    ("phone", lambda f: f.phone, validate_phone),
    ("email", lambda f: f.email, validate_email),
    (
        "telecomProvider",
        lambda f: f.telecom_provider,
        lambda v: validate_optional_choice(v, TELECOM_PROVIDERS, "지원하지 않는 통신사입니다"),
    ),
    ("address", lambda f: f.address, lambda v: validate_max_length(v, "주소", 200)),
    ("occupation", lambda f: f.occupation, lambda v: validate_max_length(v, "직업", 50)),
    (
        "height",
        lambda f: f.height,
        lambda v: validate_optional_range(v, HEIGHT_RANGE, "키는 100cm~250cm 사이로 입력해주세요"),
    ),
    (
        "weight",
        lambda f: f.weight,
        lambda v: validate_optional_range(v, WEIGHT_RANGE, "몸무게는 30kg~200kg 사이로 입력해주세요"),
    ),
    ("notes", lambda f: f.notes, lambda v: validate_max_length(v, "메모", 1000)),
    ("importance", lambda f: f.importance, validate_importance),
    ("hasDrivingLicense", lambda f: f.has_driving_license, validate_bool),
]


def validate_client_form(form: ClientEditForm) -> ValidationResult:
    """Run every rule and collect all failures as ``field: message`` strings."""
    errors: list[str] = []
    for field_key, accessor, validator in CLIENT_FORM_RULES:
        try:
            validator(accessor(form))
        except ValueError as error:
            errors.append(f"{field_key}: {error}")
    return ValidationResult(is_valid=not errors, errors=errors)
