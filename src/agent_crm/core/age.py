"""Age conventions used on the client detail page."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum

from agent_crm.core.resident_id import parse_resident_id

# Six months approximated as 6 * 30 days.
INSURANCE_AGE_OFFSET = timedelta(days=180)


class AgeConvention(str, Enum):
    STANDARD = "standard"
    KOREAN = "korean"
    INSURANCE = "insurance"


def birthday_in_year(birth_date: date, year: int) -> date:
    """Return the birthday anniversary in ``year``; Feb 29 rolls to Mar 1 in common years."""
    try:
        return birth_date.replace(year=year)
    except ValueError:
        return date(year, 3, 1)


def calculate_age(
    birth_date: date,
    convention: AgeConvention | str = AgeConvention.STANDARD,
    today: date | None = None,
) -> int:
    """Calculate age in the requested convention."""
    today = today or date.today()
    convention = AgeConvention(convention)
    year_diff = today.year - birth_date.year

    if convention is AgeConvention.KOREAN:
        return year_diff + 1

    anniversary = birthday_in_year(birth_date, today.year)
    standard_age = year_diff if today >= anniversary else year_diff - 1
    if convention is AgeConvention.STANDARD:
        return standard_age

    if today >= anniversary + INSURANCE_AGE_OFFSET:
        return standard_age + 1
    return standard_age


def calculate_all_ages(birth_date: date, today: date | None = None) -> dict[str, int]:
    """Return every convention at once for display."""
    today = today or date.today()
    return {
        convention.value: calculate_age(birth_date, convention, today=today)
        for convention in AgeConvention
    }


def age_from_resident_id(
    full_id: str,
    convention: AgeConvention | str = AgeConvention.STANDARD,
    today: date | None = None,
) -> int | None:
    """Return the age encoded by an RRN, or None when the RRN is invalid."""
    parsed = parse_resident_id(full_id, today=today)
    if not parsed.is_valid or parsed.birth_date is None:
        return None
    return calculate_age(parsed.birth_date, convention, today=today)
