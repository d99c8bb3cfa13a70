"""Client detail page state, kept out of the presentation layer."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from enum import Enum
from typing import Callable

from agent_crm.core.age import AgeConvention, calculate_age
from agent_crm.core.bmi import BMIResult, bmi_report
from agent_crm.core.resident_id import ParsedIdentity, parse_resident_id_segments
from agent_crm.core.validation import ValidationResult, validate_client_form
from agent_crm.models.client import IMPORTANCE_LABELS, ClientEditForm, ClientView
from agent_crm.models.opportunity import OpportunityWizard


class Modal(str, Enum):
    DELETE_CLIENT = "delete_client"
    TAGS = "tags"
    CONSULTATION_NOTE = "consultation_note"
    DELETE_NOTE = "delete_note"
    COMPANION = "companion"
    DELETE_COMPANION = "delete_companion"
    NEW_OPPORTUNITY = "new_opportunity"


class DetailTab(str, Enum):
    CONSULTATION_NOTES = "consultation_notes"
    MEDICAL_HISTORY = "medical_history"
    CHECKUP_PURPOSES = "checkup_purposes"
    INTERESTS = "interests"
    COMPANIONS = "companions"


@dataclass(frozen=True)
class FieldSpec:
    """One profile row: form key, label and a typed accessor."""

    key: str
    label: str
    getter: Callable[[ClientView], str]


def _importance_label(client: ClientView) -> str:
    return IMPORTANCE_LABELS.get(client.importance, client.importance)


def _driving_license(client: ClientView) -> str:
    return "있음" if client.has_driving_license else "없음"


PROFILE_FIELDS: tuple[FieldSpec, ...] = (
    FieldSpec("full_name", "고객명", lambda c: c.full_name),
    FieldSpec("phone", "전화번호", lambda c: c.phone),
    FieldSpec("email", "이메일", lambda c: c.email),
    FieldSpec("telecom_provider", "통신사", lambda c: "" if c.telecom_provider == "none" else c.telecom_provider),
    FieldSpec("address", "주소", lambda c: c.address),
    FieldSpec("occupation", "직업", lambda c: c.occupation),
    FieldSpec("height", "키(cm)", lambda c: c.height),
    FieldSpec("weight", "몸무게(kg)", lambda c: c.weight),
    FieldSpec("importance", "중요도", _importance_label),
    FieldSpec("has_driving_license", "운전면허", _driving_license),
    FieldSpec("ssn", "주민등록번호", lambda c: c.ssn_masked),
)


def form_from_client(client: ClientView) -> ClientEditForm:
    """Seed an edit form from stored values; RRN segments start empty."""
    return ClientEditForm(
        full_name=client.full_name,
        phone=client.phone,
        email=client.email,
        telecom_provider=client.telecom_provider,
        address=client.address,
        occupation=client.occupation,
        height=client.height,
        weight=client.weight,
        notes=client.notes,
        importance=client.importance,
        has_driving_license=client.has_driving_license,
        referred_by_id=str(client.referred_by_id) if client.referred_by_id else "",
    )


@dataclass
class ClientDetailSession:
    """Edit mode, open modals, tab and tag selection for one client detail view."""

    client: ClientView
    today: Callable[[], date] = date.today
    form: ClientEditForm | None = None
    open_modals: set[Modal] = field(default_factory=set)
    selected_tag_ids: set[int] = field(default_factory=set)
    active_tab: DetailTab = DetailTab.CONSULTATION_NOTES
    wizard: OpportunityWizard = field(default_factory=OpportunityWizard)

    @property
    def is_editing(self) -> bool:
        return self.form is not None

    def profile_rows(self) -> list[tuple[str, str]]:
        return [(spec.label, spec.getter(self.client)) for spec in PROFILE_FIELDS]

    def start_edit(self) -> ClientEditForm:
        if self.form is None:
            self.form = form_from_client(self.client)
        return self.form

    def update_field(self, key: str, value: str | bool) -> None:
        """Apply one keystroke-level change to the edit form."""
        if self.form is None:
            raise RuntimeError("편집 모드가 아닙니다.")
        if key not in ClientEditForm.__dataclass_fields__:
            raise KeyError(key)
        self.form = replace(self.form, **{key: value})

    def cancel_edit(self) -> None:
        self.form = None

    def validate(self) -> ValidationResult:
        if self.form is None:
            raise RuntimeError("편집 모드가 아닙니다.")
        return validate_client_form(self.form)

    def identity_preview(self) -> ParsedIdentity | None:
        """Parse the RRN segments being typed; None until both are complete."""
        if self.form is None:
            return None
        return parse_resident_id_segments(self.form.ssn_front, self.form.ssn_back, today=self.today())

    def finish_edit(self, saved: ClientView) -> None:
        """Adopt the saved client and leave edit mode."""
        self.client = saved
        self.form = None

    def bmi(self) -> BMIResult | None:
        source = self.form or self.client
        return bmi_report(source.height, source.weight, self.client.gender)

    def age(self, convention: AgeConvention | str = AgeConvention.STANDARD) -> int | None:
        if self.client.birth_date is None:
            return None
        return calculate_age(self.client.birth_date, convention, today=self.today())

    def open_modal(self, modal: Modal) -> None:
        self.open_modals.add(modal)

    def close_modal(self, modal: Modal) -> None:
        self.open_modals.discard(modal)
        if modal is Modal.NEW_OPPORTUNITY:
            self.wizard.reset()

    def is_open(self, modal: Modal) -> bool:
        return modal in self.open_modals

    def toggle_tag(self, tag_id: int) -> None:
        if tag_id in self.selected_tag_ids:
            self.selected_tag_ids.remove(tag_id)
        else:
            self.selected_tag_ids.add(tag_id)
