"""BMI calculation and gender-aware classification."""

from __future__ import annotations

import math
from dataclasses import dataclass

from agent_crm.core.resident_id import FEMALE, MALE

UNDERWEIGHT_LIMIT = 18.5
OBESE_LIMIT = 30.0
# gender -> (normal upper bound, overweight upper bound)
GENDER_LIMITS: dict[str | None, tuple[float, float]] = {
    FEMALE: (22.9, 24.9),
    None: (24.9, 29.9),
}
BASIS_LABELS = {FEMALE: "여성 기준", MALE: "남성 기준"}


@dataclass(frozen=True)
class BMIResult:
    value: float
    status: str
    color: str
    detail: str


def _parse_positive(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def _round1(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def _limits(gender: str | None) -> tuple[float, float]:
    return GENDER_LIMITS[FEMALE] if gender == FEMALE else GENDER_LIMITS[None]


def calculate_bmi(height_cm: str | None, weight_kg: str | None) -> float | None:
    """Return BMI rounded to one decimal, or None for missing or non-positive input."""
    height = _parse_positive(height_cm)
    weight = _parse_positive(weight_kg)
    if height is None or weight is None:
        return None
    height_m = height / 100
    return _round1(weight / (height_m * height_m))


def classify_bmi(bmi: float, gender: str | None = None) -> BMIResult:
    """Classify BMI; the normal and overweight bands narrow for women."""
    normal_limit, overweight_limit = _limits(gender)
    basis = BASIS_LABELS.get(gender, "기본 기준")

    if bmi < UNDERWEIGHT_LIMIT:
        return BMIResult(bmi, "저체중", "blue", f"{basis} 저체중")
    if bmi < normal_limit:
        return BMIResult(bmi, "정상체중", "green", f"{basis} 정상")
    if bmi < overweight_limit:
        return BMIResult(bmi, "과체중", "yellow", f"{basis} 과체중")
    if bmi < OBESE_LIMIT:
        return BMIResult(bmi, "비만", "orange", "성별 무관 비만")
    return BMIResult(bmi, "고도비만", "red", "성별 무관 고도비만")


def bmi_report(
    height_cm: str | None,
    weight_kg: str | None,
    gender: str | None = None,
) -> BMIResult | None:
    """Calculate and classify in one step."""
    bmi = calculate_bmi(height_cm, weight_kg)
    if bmi is None:
        return None
    return classify_bmi(bmi, gender)


def ideal_weight_range(height_cm: str | None, gender: str | None = None) -> tuple[int, int] | None:
    """Return the (min, max) kg range that keeps BMI in the normal band."""
    height = _parse_positive(height_cm)
    if height is None:
        return None
    height_m = height / 100
    normal_limit, _ = _limits(gender)
    return (
        round(UNDERWEIGHT_LIMIT * height_m * height_m),
        round(normal_limit * height_m * height_m),
    )
