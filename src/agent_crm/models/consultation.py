"""Consultation note and companion models."""

from __future__ import annotations

from dataclasses import dataclass

COMPANION_RELATIONSHIPS = (
    "배우자",
    "자녀",
    "부모",
    "형제/자매",
    "친구",
    "동료",
    "기타",
)


@dataclass
class ConsultationNoteCreate:
    """Input model for a consultation note."""

    consultation_date: str
    title: str
    content: str
    contract_info: str = ""
    follow_up_date: str = ""
    follow_up_notes: str = ""
    note_type: str = "consultation"


@dataclass
class ConsultationNoteView:
    id: int
    client_id: int
    consultation_date: str
    title: str
    content: str
    contract_info: str
    follow_up_date: str
    follow_up_notes: str
    note_type: str


@dataclass
class CompanionCreate:
    """Input model for a person who joined a consultation."""

    name: str
    phone: str = ""
    relationship: str = ""
    is_primary: bool = False


@dataclass
class CompanionView:
    id: int
    client_id: int
    name: str
    phone: str
    relationship: str
    is_primary: bool
