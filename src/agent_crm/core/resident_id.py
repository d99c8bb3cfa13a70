"""Korean resident registration number (RRN) parsing and helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum

MALE = "male"
FEMALE = "female"

RRN_LENGTH = 13
FRONT_LENGTH = 6
BACK_LENGTH = 7
MAX_PLAUSIBLE_AGE = 120

CHECKSUM_WEIGHTS = [2, 3, 4, 5, 6, 7, 8, 9, 2, 3, 4, 5]
SEPARATOR_PATTERN = re.compile(r"[-\s]")
NON_DIGIT_PATTERN = re.compile(r"[^\d]", re.ASCII)
RRN_DIGITS_PATTERN = re.compile(r"\d{13}", re.ASCII)

# code digit -> (century base, gender)
CENTURY_CODES: dict[int, tuple[int, str]] = {
    1: (1900, MALE),
    2: (1900, FEMALE),
    3: (2000, MALE),
    4: (2000, FEMALE),
    5: (1900, MALE),
    6: (1900, FEMALE),
    7: (2000, MALE),
    8: (2000, FEMALE),
}

WRONG_LENGTH_MESSAGE = "주민등록번호는 13자리여야 합니다."
FUTURE_DATE_MESSAGE = "미래 날짜로 입력되었습니다."


class ResidentIdError(str, Enum):
    """Kinds of RRN parse failures."""

    WRONG_LENGTH = "wrong_length"
    INVALID_CODE = "invalid_code"
    INVALID_CALENDAR_DATE = "invalid_calendar_date"
    FUTURE_DATE = "future_date"
    INCONSISTENT_CODE = "inconsistent_code"


@dataclass(frozen=True)
class ParsedIdentity:
    """Outcome of parsing one RRN."""

    is_valid: bool
    birth_date: date | None = None
    gender: str | None = None
    error_message: str | None = None
    error_kind: ResidentIdError | None = None

    @classmethod
    def valid(cls, birth_date: date, gender: str) -> "ParsedIdentity":
        return cls(is_valid=True, birth_date=birth_date, gender=gender)

    @classmethod
    def invalid(cls, kind: ResidentIdError, message: str) -> "ParsedIdentity":
        return cls(is_valid=False, error_message=message, error_kind=kind)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _years_between(earlier: date, later: date) -> int:
    years = later.year - earlier.year
    if (later.month, later.day) < (earlier.month, earlier.day):
        years -= 1
    return years


def _counterpart_codes(code: int) -> tuple[int, int]:
    """Return the (male, female) codes of the other century for the same residency."""
    foreign = code >= 5
    if CENTURY_CODES[code][0] == 2000:
        return (5, 6) if foreign else (1, 2)
    return (7, 8) if foreign else (3, 4)


def _code_hint(year: int, codes: tuple[int, int]) -> str:
    return f"{year}년생은 성별코드가 {codes[0]}(남성) 또는 {codes[1]}(여성)이어야 합니다."


def clean_resident_id(value: str) -> str:
    """Strip hyphens and whitespace from an RRN."""
    return SEPARATOR_PATTERN.sub("", value or "")


def parse_resident_id(full_id: str, today: date | None = None) -> ParsedIdentity:
    """Parse ``YYMMDD-CNNNNNN`` (hyphen optional) into birth date and gender."""
    today = today or date.today()
    digits = clean_resident_id(full_id)
    if not RRN_DIGITS_PATTERN.fullmatch(digits):
        return ParsedIdentity.invalid(ResidentIdError.WRONG_LENGTH, WRONG_LENGTH_MESSAGE)

    yy = int(digits[0:2])
    month = int(digits[2:4])
    day = int(digits[4:6])
    code = int(digits[6])

    if code not in CENTURY_CODES:
        return ParsedIdentity.invalid(
            ResidentIdError.INVALID_CODE,
            f"성별코드 {code}은(는) 유효하지 않습니다. 1~8 사이의 숫자를 입력해주세요.",
        )

    century, gender = CENTURY_CODES[code]
    year = century + yy
    birth_date = _safe_date(year, month, day)
    if birth_date is None:
        return ParsedIdentity.invalid(
            ResidentIdError.INVALID_CALENDAR_DATE,
            f"{year}년 {month:02d}월 {day:02d}일은 유효하지 않은 날짜입니다.",
        )

    other_codes = _counterpart_codes(code)
    other_year = (1900 if century == 2000 else 2000) + yy
    other_date = _safe_date(other_year, month, day)
    other_is_past = other_date is not None and other_date <= today

    if birth_date > today:
        message = FUTURE_DATE_MESSAGE
        if other_is_past:
            message = f"{message} {_code_hint(other_year, other_codes)}"
        return ParsedIdentity.invalid(ResidentIdError.FUTURE_DATE, message)

    if century == 1900 and other_is_past and _years_between(birth_date, today) > MAX_PLAUSIBLE_AGE:
        return ParsedIdentity.invalid(
            ResidentIdError.INCONSISTENT_CODE,
            _code_hint(other_year, other_codes),
        )

    return ParsedIdentity.valid(birth_date, gender)


def parse_resident_id_segments(
    front: str,
    back: str,
    today: date | None = None,
) -> ParsedIdentity | None:
    """Parse separately typed segments; return None while input is incomplete."""
    front_digits = NON_DIGIT_PATTERN.sub("", front or "")
    back_digits = NON_DIGIT_PATTERN.sub("", back or "")
    if len(front_digits) != FRONT_LENGTH or len(back_digits) != BACK_LENGTH:
        return None
    return parse_resident_id(f"{front_digits}-{back_digits}", today=today)


def has_valid_checksum(full_id: str) -> bool:
    """Check the legacy mod-11 check digit.

    Numbers issued from October 2020 use a random last digit, so this is
    informational and never part of ``parse_resident_id``.
    """
    digits = clean_resident_id(full_id)
    if not RRN_DIGITS_PATTERN.fullmatch(digits):
        return False
    total = sum(int(digits[i]) * CHECKSUM_WEIGHTS[i] for i in range(12))
    return (11 - (total % 11)) % 10 == int(digits[-1])


def mask_resident_id(full_id: str) -> str:
    """Mask an RRN like 771111-1234567 => 771111-1******."""
    digits = clean_resident_id(full_id)
    if not RRN_DIGITS_PATTERN.fullmatch(digits):
        return "******-*******"
    return f"{digits[:6]}-{digits[6]}******"


def format_resident_id_input(value: str) -> str:
    """Keep digits only and insert the hyphen after the birth date part."""
    digits = NON_DIGIT_PATTERN.sub("", value or "")[:RRN_LENGTH]
    if len(digits) > FRONT_LENGTH:
        return f"{digits[:FRONT_LENGTH]}-{digits[FRONT_LENGTH:]}"
    return digits


def format_birth_date(birth_date: date) -> str:
    return f"{birth_date.year}년 {birth_date.month:02d}월 {birth_date.day:02d}일"


def format_gender(gender: str) -> str:
    return "남성" if gender == MALE else "여성"


def friendly_resident_id_message(parsed: ParsedIdentity) -> str:
    """Return the message shown when saving a client with a bad RRN."""
    kind = parsed.error_kind
    message = parsed.error_message or ""
    if kind is ResidentIdError.INCONSISTENT_CODE or "성별코드가" in message:
        hint = message.replace(FUTURE_DATE_MESSAGE, "").strip()
        return f"{hint} 입력하신 번호를 다시 확인해주세요."
    if kind is ResidentIdError.FUTURE_DATE:
        return "미래 날짜로 입력되었습니다. 주민등록번호를 다시 확인해주세요."
    if kind is ResidentIdError.INVALID_CALENDAR_DATE:
        return "존재하지 않는 날짜입니다. 생년월일 부분을 확인해주세요."
    if kind is ResidentIdError.INVALID_CODE:
        return "성별코드가 올바르지 않습니다. 주민등록번호를 다시 확인해주세요."
    if kind is ResidentIdError.WRONG_LENGTH:
        return "주민등록번호는 13자리여야 합니다. (예: 771111-1234567)"
    return "주민등록번호를 확인해주세요."
