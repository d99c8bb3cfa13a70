"""Tests for resident registration number parsing."""

from __future__ import annotations

from datetime import date

import pytest

from agent_crm.core.resident_id import (
    FEMALE,
    MALE,
    ResidentIdError,
    format_birth_date,
    format_gender,
    format_resident_id_input,
    friendly_resident_id_message,
    has_valid_checksum,
    mask_resident_id,
    parse_resident_id,
    parse_resident_id_segments,
)

TODAY = date(2024, 6, 1)


@pytest.mark.parametrize(
    ("full_id", "birth_date", "gender"),
    [
        ("900101-1234567", date(1990, 1, 1), MALE),
        ("9001012234567", date(1990, 1, 1), FEMALE),
        ("050315-3234567", date(2005, 3, 15), MALE),
        ("050315-4234567", date(2005, 3, 15), FEMALE),
        ("900101-5234567", date(1990, 1, 1), MALE),
        ("900101-6234567", date(1990, 1, 1), FEMALE),
        ("050315-7234567", date(2005, 3, 15), MALE),
        ("050315-8234567", date(2005, 3, 15), FEMALE),
        ("771111-1000000", date(1977, 11, 11), MALE),
    ],
)
def test_parse_valid_ids(full_id: str, birth_date: date, gender: str) -> None:
    parsed = parse_resident_id(full_id, today=TODAY)

    assert parsed.is_valid
    assert parsed.birth_date == birth_date
    assert parsed.gender == gender
    assert parsed.error_message is None
    assert parsed.error_kind is None


@pytest.mark.parametrize(
    "full_id",
    ["", "90010-1234567", "900101-12345678", "900101-123456a", "abc", "9²0101-1234567", "٣00101-1234567"],
)
def test_parse_rejects_wrong_length(full_id: str) -> None:
    parsed = parse_resident_id(full_id, today=TODAY)

    assert not parsed.is_valid
    assert parsed.error_kind is ResidentIdError.WRONG_LENGTH
    assert parsed.error_message == "주민등록번호는 13자리여야 합니다."
    assert parsed.birth_date is None
    assert parsed.gender is None


@pytest.mark.parametrize("code", ["0", "9"])
def test_parse_rejects_unknown_code(code: str) -> None:
    parsed = parse_resident_id(f"900101-{code}234567", today=TODAY)

    assert parsed.error_kind is ResidentIdError.INVALID_CODE
    assert f"성별코드 {code}" in parsed.error_message


def test_parse_rejects_impossible_calendar_date() -> None:
    parsed = parse_resident_id("901301-1234567", today=TODAY)

    assert parsed.error_kind is ResidentIdError.INVALID_CALENDAR_DATE
    assert parsed.error_message == "1990년 13월 01일은 유효하지 않은 날짜입니다."
    assert parse_resident_id("900230-1234567", today=TODAY).error_kind is ResidentIdError.INVALID_CALENDAR_DATE


def test_parse_leap_day_depends_on_century_year() -> None:
    assert parse_resident_id("000229-3234567", today=TODAY).birth_date == date(2000, 2, 29)
    assert parse_resident_id("960229-1234567", today=TODAY).birth_date == date(1996, 2, 29)

    parsed = parse_resident_id("010229-3234567", today=TODAY)
    assert parsed.error_kind is ResidentIdError.INVALID_CALENDAR_DATE
    assert parsed.error_message == "2001년 02월 29일은 유효하지 않은 날짜입니다."


def test_parse_rejects_future_date_with_century_hint() -> None:
    parsed = parse_resident_id("771111-3234567", today=TODAY)

    assert not parsed.is_valid
    assert parsed.error_kind is ResidentIdError.FUTURE_DATE
    assert parsed.error_message == (
        "미래 날짜로 입력되었습니다. 1977년생은 성별코드가 1(남성) 또는 2(여성)이어야 합니다."
    )


def test_parse_future_hint_keeps_foreign_residency() -> None:
    parsed = parse_resident_id("771111-8234567", today=TODAY)

    assert parsed.error_message.endswith("1977년생은 성별코드가 5(남성) 또는 6(여성)이어야 합니다.")


def test_parse_future_date_without_hint() -> None:
    assert parse_resident_id("000229-3234567", today=date(1999, 1, 1)).error_message == "미래 날짜로 입력되었습니다."
    assert parse_resident_id("990101-1234567", today=date(1998, 1, 1)).error_message == "미래 날짜로 입력되었습니다."


def test_parse_tomorrow_is_future_and_today_is_valid() -> None:
    assert parse_resident_id("240602-3234567", today=TODAY).error_kind is ResidentIdError.FUTURE_DATE
    assert parse_resident_id("240601-4234567", today=TODAY).birth_date == TODAY


def test_parse_flags_implausibly_old_1900s_code() -> None:
    parsed = parse_resident_id("010101-1234567", today=TODAY)

    assert parsed.error_kind is ResidentIdError.INCONSISTENT_CODE
    assert parsed.error_message == "2001년생은 성별코드가 3(남성) 또는 4(여성)이어야 합니다."
    assert "7(남성) 또는 8(여성)" in parse_resident_id("010101-6234567", today=TODAY).error_message


def test_parse_keeps_120_year_old_client() -> None:
    parsed = parse_resident_id("030701-1234567", today=TODAY)

    assert parsed.is_valid
    assert parsed.birth_date == date(1903, 7, 1)


@pytest.mark.parametrize(
    ("birth_date", "code"),
    [
        (date(1955, 12, 31), 2),
        (date(1988, 2, 29), 1),
        (date(2010, 7, 4), 4),
        (date(2023, 1, 1), 7),
    ],
)
def test_parse_recovers_encoded_birth_date(birth_date: date, code: int) -> None:
    full_id = f"{birth_date:%y%m%d}-{code}000000"

    parsed = parse_resident_id(full_id, today=TODAY)

    assert parsed.birth_date == birth_date
    assert parsed.gender == (MALE if code % 2 else FEMALE)


def test_parse_segments_waits_for_complete_input() -> None:
    assert parse_resident_id_segments("900101", "123", today=TODAY) is None
    assert parse_resident_id_segments("9001", "1234567", today=TODAY) is None
    assert parse_resident_id_segments("", "", today=TODAY) is None

    parsed = parse_resident_id_segments("900101", "1234567", today=TODAY)
    assert parsed is not None
    assert parsed.birth_date == date(1990, 1, 1)


def test_parse_segments_reports_errors_once_complete() -> None:
    parsed = parse_resident_id_segments("771111", "3234567", today=TODAY)

    assert parsed is not None
    assert parsed.error_kind is ResidentIdError.FUTURE_DATE


def test_checksum_is_informational() -> None:
    assert has_valid_checksum("900101-1234568")
    assert not has_valid_checksum("900101-1234567")
    assert not has_valid_checksum("900101")
    assert not has_valid_checksum("9²0101-1234568")
    assert parse_resident_id("900101-1234567", today=TODAY).is_valid


def test_mask_and_format_helpers() -> None:
    assert mask_resident_id("771111-1234567") == "771111-1******"
    assert mask_resident_id("7711111234567") == "771111-1******"
    assert mask_resident_id("123") == "******-*******"
    assert mask_resident_id("9²0101-1234567") == "******-*******"

    assert format_resident_id_input("7711111234567") == "771111-1234567"
    assert format_resident_id_input("7711") == "7711"
    assert format_resident_id_input("771111-12345678") == "771111-1234567"

    assert format_birth_date(date(1990, 1, 1)) == "1990년 01월 01일"
    assert format_gender(MALE) == "남성"
    assert format_gender(FEMALE) == "여성"


def test_friendly_messages() -> None:
    hinted = friendly_resident_id_message(parse_resident_id("771111-3234567", today=TODAY))
    assert hinted == "1977년생은 성별코드가 1(남성) 또는 2(여성)이어야 합니다. 입력하신 번호를 다시 확인해주세요."

    inconsistent = friendly_resident_id_message(parse_resident_id("010101-1234567", today=TODAY))
    assert inconsistent.startswith("2001년생은 성별코드가 3(남성)")

    future = friendly_resident_id_message(parse_resident_id("990101-1234567", today=date(1998, 1, 1)))
    assert future == "미래 날짜로 입력되었습니다. 주민등록번호를 다시 확인해주세요."

    assert "존재하지 않는 날짜" in friendly_resident_id_message(parse_resident_id("901301-1234567", today=TODAY))
    assert "성별코드가 올바르지" in friendly_resident_id_message(parse_resident_id("900101-9234567", today=TODAY))
    assert "13자리" in friendly_resident_id_message(parse_resident_id("9001", today=TODAY))
