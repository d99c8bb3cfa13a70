"""Client detail use cases: profile edits, identity, stage moves and tab sections."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import asdict, fields
from datetime import date
from typing import Any, Callable, TypeVar

from agent_crm.core.age import calculate_all_ages
from agent_crm.core.bmi import bmi_report, ideal_weight_range
from agent_crm.core.crypto import CryptoService, fingerprint
from agent_crm.core.resident_id import (
    clean_resident_id,
    format_resident_id_input,
    friendly_resident_id_message,
    mask_resident_id,
    parse_resident_id_segments,
)
from agent_crm.core.validation import validate_client_form
from agent_crm.models.client import (
    CheckupPurposes,
    ClientEditForm,
    ClientView,
    IdentityRecord,
    InterestCategories,
    MedicalHistory,
)
from agent_crm.models.result import ActionResult
from agent_crm.repositories.audit_repository import AuditRepository
from agent_crm.repositories.client_repository import ClientRepository
from agent_crm.repositories.tag_repository import TagRepository

logger = logging.getLogger(__name__)

SectionT = TypeVar("SectionT", MedicalHistory, CheckupPurposes, InterestCategories)

SECTION_LABELS = {
    "medical_history": "병력사항",
    "checkup_purposes": "점검목적",
    "interest_categories": "관심사항",
}


class ClientService:
    """Coordinates client detail use cases; failures come back as ActionResult."""

    def __init__(
        self,
        client_repo: ClientRepository,
        tag_repo: TagRepository,
        audit_repo: AuditRepository,
        crypto: CryptoService,
        today: Callable[[], date] = date.today,
    ):
        self._client_repo = client_repo
        self._tag_repo = tag_repo
        self._audit_repo = audit_repo
        self._crypto = crypto
        self._today = today

    @staticmethod
    def _to_profile(form: ClientEditForm) -> dict[str, Any]:
        referred_by = form.referred_by_id.strip()
        if referred_by and not referred_by.isdigit():
            raise ValueError("소개자 ID가 올바르지 않습니다.")
        return {
            "full_name": form.full_name.strip(),
            "phone": form.phone.strip() or None,
            "email": form.email.strip() or None,
            "telecom_provider": None if form.telecom_provider in ("", "none") else form.telecom_provider,
            "address": form.address.strip() or None,
            "occupation": form.occupation.strip() or None,
            "height": form.height.strip() or None,
            "weight": form.weight.strip() or None,
            "importance": form.importance,
            "notes": form.notes.strip() or None,
            "has_driving_license": int(form.has_driving_license),
            "referred_by_id": int(referred_by) if referred_by else None,
        }

    @staticmethod
    def _validation_failure(form: ClientEditForm) -> ActionResult | None:
        result = validate_client_form(form)
        if result.is_valid:
            return None
        failure = ActionResult.fail(
            "입력값을 확인해주세요.",
            error="; ".join(result.errors),
            input_error=True,
        )
        failure.data["errors"] = result.errors
        return failure

    def _check_referrer(self, agent_id: str, client_id: int | None, profile: dict[str, Any]) -> None:
        referred_by = profile["referred_by_id"]
        if referred_by is None:
            return
        if referred_by == client_id:
            raise ValueError("자기 자신을 소개자로 지정할 수 없습니다.")
        if not self._client_repo.exists_active_client(agent_id, referred_by):
            raise ValueError("소개자 고객을 찾을 수 없습니다.")

    def create_client(self, agent_id: str, form: ClientEditForm) -> ActionResult:
        """Validate and insert a new client; the RRN is stored when both segments are complete."""
        failure = self._validation_failure(form)
        if failure:
            return failure
        parsed = parse_resident_id_segments(form.ssn_front, form.ssn_back, today=self._today())
        if parsed is not None and not parsed.is_valid:
            return ActionResult.fail(
                friendly_resident_id_message(parsed),
                error=parsed.error_message,
                input_error=True,
            )
        try:
            profile = self._to_profile(form)
            self._check_referrer(agent_id, None, profile)
            full_id = format_resident_id_input(form.ssn_front + form.ssn_back)
            if parsed is not None:
                self._ensure_unique_resident_id(agent_id, None, full_id)
            with self._client_repo.transaction():
                client_id = self._client_repo.create_client(agent_id, profile)
                if parsed is not None:
                    self._store_identity(client_id, full_id, parsed.birth_date, parsed.gender)
        except (ValueError, sqlite3.Error) as error:
            logger.warning("client create failed agent=%s: %s", agent_id, error)
            return ActionResult.fail(f"고객 등록에 실패했습니다: {error}", error=str(error))

        self._audit_repo.record(
            agent_id,
            "CREATE",
            "client",
            client_id,
            lambda: {"event": "client created", "after": self._snapshot(agent_id, client_id)},
        )
        logger.info("client created id=%s agent=%s", client_id, agent_id)
        return ActionResult.ok("고객이 성공적으로 등록되었습니다.", client_id=client_id)

    def update_client(self, agent_id: str, client_id: int, form: ClientEditForm) -> ActionResult:
        """Validate and save the edit form, re-deriving birth date and gender from the RRN."""
        failure = self._validation_failure(form)
        if failure:
            return failure

        parsed = parse_resident_id_segments(form.ssn_front, form.ssn_back, today=self._today())
        if parsed is not None and not parsed.is_valid:
            logger.warning(
                "resident id rejected client=%s kind=%s",
                client_id,
                parsed.error_kind.value if parsed.error_kind else None,
            )
            return ActionResult.fail(
                friendly_resident_id_message(parsed),
                error=parsed.error_message,
                input_error=True,
            )

        try:
            if not self._client_repo.exists_active_client(agent_id, client_id):
                raise ValueError("수정할 고객 정보를 찾을 수 없습니다.")
            profile = self._to_profile(form)
            self._check_referrer(agent_id, client_id, profile)
            full_id = format_resident_id_input(form.ssn_front + form.ssn_back)
            if parsed is not None:
                self._ensure_unique_resident_id(agent_id, client_id, full_id)

            before = self._snapshot(agent_id, client_id)
            with self._client_repo.transaction():
                self._client_repo.update_client(agent_id, client_id, profile)
                if parsed is not None:
                    self._store_identity(client_id, full_id, parsed.birth_date, parsed.gender)
        except (ValueError, sqlite3.Error) as error:
            logger.warning("client update failed id=%s: %s", client_id, error)
            return ActionResult.fail(f"고객 정보 수정에 실패했습니다: {error}", error=str(error))

        self._audit_repo.record(
            agent_id,
            "UPDATE",
            "client",
            client_id,
            lambda: {"event": "client updated", "changes": self._diff(before, self._snapshot(agent_id, client_id))},
        )
        return ActionResult.ok(
            "고객 정보가 성공적으로 업데이트되었습니다.",
            birth_date=parsed.birth_date.isoformat() if parsed else None,
            gender=parsed.gender if parsed else None,
        )

    def _ensure_unique_resident_id(self, agent_id: str, client_id: int | None, full_id: str) -> None:
        owner = self._client_repo.find_client_by_ssn_hash(
            agent_id,
            fingerprint(clean_resident_id(full_id)),
            exclude_client_id=client_id,
        )
        if owner is not None:
            raise ValueError("이미 등록된 주민등록번호입니다.")

    def _store_identity(self, client_id: int, full_id: str, birth_date: date | None, gender: str | None) -> None:
        if birth_date is None or gender is None:
            raise ValueError("주민등록번호 파싱 결과가 올바르지 않습니다.")
        digits = clean_resident_id(full_id)
        record = IdentityRecord(
            birth_date=birth_date,
            gender=gender,
            encrypted_id=self._crypto.encrypt_resident_id(digits, client_id),
        )
        self._client_repo.upsert_details(client_id, record, fingerprint(digits))
        logger.info("identity stored client=%s ssn=%s", client_id, mask_resident_id(digits))

    def get_client(self, agent_id: str, client_id: int) -> ClientView | None:
        """Fetch one client with the RRN masked."""
        row = self._client_repo.get_client(agent_id, client_id)
        if not row:
            return None
        tags = [tag["name"] for tag in self._tag_repo.list_client_tags(agent_id, client_id)]
        return self._to_view(row, tags)

    def list_clients(self, agent_id: str, limit: int = 50, offset: int = 0) -> list[ClientView]:
        rows = self._client_repo.list_clients(agent_id, limit=limit, offset=offset)
        return [self._to_view(row, []) for row in rows]

    def _to_view(self, row: dict[str, Any], tags: list[str]) -> ClientView:
        masked = ""
        if row.get("ssn_encrypted"):
            masked = mask_resident_id(self._crypto.decrypt_resident_id(row["ssn_encrypted"], row["id"]))
        return ClientView(
            id=row["id"],
            agent_id=row["agent_id"],
            full_name=row["full_name"],
            phone=row["phone"] or "",
            email=row["email"] or "",
            telecom_provider=row["telecom_provider"] or "none",
            address=row["address"] or "",
            occupation=row["occupation"] or "",
            height=row["height"] or "",
            weight=row["weight"] or "",
            importance=row["importance"],
            notes=row["notes"] or "",
            has_driving_license=bool(row["has_driving_license"]),
            referred_by_id=row["referred_by_id"],
            current_stage_id=row["current_stage_id"],
            birth_date=date.fromisoformat(row["birth_date"]) if row.get("birth_date") else None,
            gender=row.get("gender"),
            ssn_masked=masked,
            tags=tags,
        )

    def display_values(self, client: ClientView) -> dict[str, Any]:
        """Derive the ages and BMI figures shown beside the profile."""
        today = self._today()
        report = bmi_report(client.height, client.weight, client.gender)
        return {
            "ages": calculate_all_ages(client.birth_date, today=today) if client.birth_date else None,
            "bmi": report,
            "ideal_weight": ideal_weight_range(client.height, client.gender),
        }

    def delete_client(self, agent_id: str, client_id: int) -> ActionResult:
        """Soft-delete a client."""
        try:
            if self._client_repo.soft_delete_client(agent_id, client_id) == 0:
                raise ValueError("삭제할 고객 정보를 찾을 수 없습니다.")
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"고객 삭제에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "DELETE", "client", client_id, "client soft-deleted")
        return ActionResult.ok("고객이 성공적으로 삭제되었습니다.")

    def list_stages(self, agent_id: str) -> list[dict[str, Any]]:
        self._client_repo.ensure_default_stages(agent_id)
        return self._client_repo.list_stages(agent_id)

    def update_stage(
        self,
        agent_id: str,
        client_id: int,
        stage_id: int | None,
        notes: str = "",
    ) -> ActionResult:
        """Move a client into a pipeline stage, appending the opportunity notes."""
        try:
            if stage_id is None:
                raise ValueError("대상 단계 ID가 필요합니다.")
            stage = self._client_repo.get_stage(agent_id, stage_id)
            if stage is None:
                raise ValueError("영업 단계를 찾을 수 없습니다.")
            row = self._client_repo.get_client(agent_id, client_id)
            if row is None:
                raise ValueError("고객 정보를 찾을 수 없습니다.")

            existing = row["notes"] or ""
            stamp = self._today().strftime("%Y. %m. %d.")
            new_notes = notes.strip()
            if existing and new_notes:
                combined = f"{existing}\n\n--- 새 영업 기회 ({stamp}) ---\n{new_notes}"
            else:
                combined = existing or new_notes
            self._client_repo.update_stage(agent_id, client_id, stage_id, combined)
        except (ValueError, sqlite3.Error) as error:
            logger.warning("stage update failed client=%s: %s", client_id, error)
            return ActionResult.fail(f"영업 기회 생성에 실패했습니다: {error}", error=str(error))

        self._audit_repo.record(
            agent_id,
            "UPDATE",
            "client",
            client_id,
            {"event": "stage changed", "stage": stage["name"]},
        )
        return ActionResult.ok("영업 기회가 성공적으로 생성되었습니다.", stage_id=stage_id)

    def _save_section(self, agent_id: str, client_id: int, section: str, payload: Any) -> ActionResult:
        label = SECTION_LABELS[section]
        try:
            if not self._client_repo.exists_active_client(agent_id, client_id):
                raise ValueError("고객 정보를 찾을 수 없습니다.")
            self._client_repo.upsert_section(client_id, section, asdict(payload), agent_id)
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"{label} 업데이트에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "UPDATE", section, client_id, f"{section} saved")
        return ActionResult.ok(f"{label}이(가) 성공적으로 업데이트되었습니다.")

    def _load_section(self, client_id: int, section: str, model: type[SectionT]) -> SectionT:
        stored = self._client_repo.get_section(client_id, section) or {}
        known = {item.name for item in fields(model)}
        return model(**{key: value for key, value in stored.items() if key in known})

    def update_medical_history(self, agent_id: str, client_id: int, history: MedicalHistory) -> ActionResult:
        return self._save_section(agent_id, client_id, "medical_history", history)

    def update_checkup_purposes(self, agent_id: str, client_id: int, purposes: CheckupPurposes) -> ActionResult:
        return self._save_section(agent_id, client_id, "checkup_purposes", purposes)

    def update_interest_categories(
        self,
        agent_id: str,
        client_id: int,
        interests: InterestCategories,
    ) -> ActionResult:
        return self._save_section(agent_id, client_id, "interest_categories", interests)

    def get_medical_history(self, agent_id: str, client_id: int) -> MedicalHistory | None:
        if not self._client_repo.exists_active_client(agent_id, client_id):
            return None
        return self._load_section(client_id, "medical_history", MedicalHistory)

    def get_checkup_purposes(self, agent_id: str, client_id: int) -> CheckupPurposes | None:
        if not self._client_repo.exists_active_client(agent_id, client_id):
            return None
        return self._load_section(client_id, "checkup_purposes", CheckupPurposes)

    def get_interest_categories(self, agent_id: str, client_id: int) -> InterestCategories | None:
        if not self._client_repo.exists_active_client(agent_id, client_id):
            return None
        return self._load_section(client_id, "interest_categories", InterestCategories)

    def _snapshot(self, agent_id: str, client_id: int) -> dict[str, str]:
        """Build a masked snapshot for audit logs."""
        row = self._client_repo.get_client(agent_id, client_id)
        if not row:
            return {}
        view = self._to_view(row, [])
        return {
            "full_name": view.full_name,
            "phone": view.phone,
            "email": view.email,
            "address": view.address,
            "occupation": view.occupation,
            "height": view.height,
            "weight": view.weight,
            "importance": view.importance,
            "has_driving_license": str(view.has_driving_license),
            "birth_date": view.birth_date.isoformat() if view.birth_date else "",
            "gender": view.gender or "",
            "ssn": view.ssn_masked,
        }

    @staticmethod
    def _diff(before: dict[str, str], after: dict[str, str]) -> dict[str, dict[str, str]]:
        """Return changed fields for audit logs."""
        changes: dict[str, dict[str, str]] = {}
        for key in sorted(set(before) | set(after)):
            old = before.get(key, "")
            new = after.get(key, "")
            if old != new:
                changes[key] = {"before": old, "after": new}
        return changes
