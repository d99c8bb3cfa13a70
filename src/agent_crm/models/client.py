"""Client domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

IMPORTANCE_LABELS = {
    "high": "키맨",
    "medium": "일반",
    "low": "관심",
}

TELECOM_PROVIDERS = (
    "none",
    "SKT",
    "KT",
    "LG U+",
    "알뜰폰 SKT",
    "알뜰폰 KT",
    "알뜰폰 LG U+",
)


@dataclass
class ClientEditForm:
    """Raw form input for creating or editing a client."""

    full_name: str
    phone: str = ""
    email: str = ""
    telecom_provider: str = "none"
    address: str = ""
    occupation: str = ""
    height: str = ""
    weight: str = ""
    notes: str = ""
    ssn_front: str = ""
    ssn_back: str = ""
    importance: str = "medium"
    has_driving_license: bool = False
    referred_by_id: str = ""


@dataclass
class IdentityRecord:
    """Derived RRN data handed to persistence; the raw number is only kept encrypted."""

    birth_date: date
    gender: str
    encrypted_id: bytes


@dataclass
class ClientView:
    """Output model for client retrieval."""

    id: int
    agent_id: str
    full_name: str
    phone: str
    email: str
    telecom_provider: str
    address: str
    occupation: str
    height: str
    weight: str
    importance: str
    notes: str
    has_driving_license: bool
    referred_by_id: int | None
    current_stage_id: int | None
    birth_date: date | None = None
    gender: str | None = None
    ssn_masked: str = ""
    tags: list[str] = field(default_factory=list)


@dataclass
class MedicalHistory:
    """Medical disclosure checklist grouped by look-back window."""

    # within 3 months
    has_recent_diagnosis: bool = False
    has_recent_suspicion: bool = False
    has_recent_medication: bool = False
    has_recent_treatment: bool = False
    has_recent_hospitalization: bool = False
    has_recent_surgery: bool = False
    recent_medical_details: str = ""
    # within 1 year
    has_additional_exam: bool = False
    additional_exam_details: str = ""
    # within 5 years
    has_major_hospitalization: bool = False
    has_major_surgery: bool = False
    has_long_term_treatment: bool = False
    has_long_term_medication: bool = False
    major_medical_details: str = ""


@dataclass
class CheckupPurposes:
    is_insurance_premium_concern: bool = False
    is_coverage_concern: bool = False
    is_medical_history_concern: bool = False
    needs_death_benefit: bool = False
    needs_implant_plan: bool = False
    needs_caregiver_insurance: bool = False
    needs_dementia_insurance: bool = False
    current_savings_location: str = ""
    additional_concerns: str = ""


@dataclass
class InterestCategories:
    interested_in_auto_insurance: bool = False
    interested_in_dementia: bool = False
    interested_in_dental: bool = False
    interested_in_driver_insurance: bool = False
    interested_in_health_checkup: bool = False
    interested_in_medical_expenses: bool = False
    interested_in_fire_insurance: bool = False
    interested_in_caregiver: bool = False
    interested_in_cancer: bool = False
    interested_in_savings: bool = False
    interested_in_liability: bool = False
    interested_in_legal_advice: bool = False
    interested_in_tax: bool = False
    interested_in_investment: bool = False
    interested_in_pet_insurance: bool = False
    interested_in_accident_insurance: bool = False
    interested_in_traffic_accident: bool = False
    interest_notes: str = ""
