"""Consultation notes and companions for the client detail tabs."""

from __future__ import annotations

import logging
import sqlite3

from agent_crm.core.validation import (
    validate_iso_date,
    validate_optional_choice,
    validate_phone,
    validate_required_text,
)
from agent_crm.models.consultation import (
    COMPANION_RELATIONSHIPS,
    CompanionCreate,
    CompanionView,
    ConsultationNoteCreate,
    ConsultationNoteView,
)
from agent_crm.models.result import ActionResult
from agent_crm.repositories.audit_repository import AuditRepository
from agent_crm.repositories.client_repository import ClientRepository
from agent_crm.repositories.consultation_repository import ConsultationRepository

logger = logging.getLogger(__name__)


class ConsultationService:
    """Coordinates note and companion use cases."""

    def __init__(
        self,
        consultation_repo: ConsultationRepository,
        client_repo: ClientRepository,
        audit_repo: AuditRepository,
    ):
        self._consultation_repo = consultation_repo
        self._client_repo = client_repo
        self._audit_repo = audit_repo

    @staticmethod
    def _validate_note(payload: ConsultationNoteCreate) -> ConsultationNoteCreate:
        if not (payload.consultation_date.strip() and payload.title.strip() and payload.content.strip()):
            raise ValueError("상담일시, 제목, 내용은 필수입니다.")
        follow_up_date = payload.follow_up_date.strip()
        if follow_up_date:
            validate_iso_date(follow_up_date, "후속 일정")
        return ConsultationNoteCreate(
            consultation_date=validate_iso_date(payload.consultation_date, "상담일시"),
            title=validate_required_text(payload.title, "제목", 100),
            content=payload.content.strip(),
            contract_info=payload.contract_info.strip(),
            follow_up_date=follow_up_date,
            follow_up_notes=payload.follow_up_notes.strip(),
            note_type=payload.note_type or "consultation",
        )

    @staticmethod
    def _validate_companion(payload: CompanionCreate) -> CompanionCreate:
        if not payload.name.strip():
            raise ValueError("동반자 이름은 필수입니다.")
        return CompanionCreate(
            name=validate_required_text(payload.name, "동반자 이름", 50),
            phone=validate_phone(payload.phone),
            relationship=validate_optional_choice(
                payload.relationship,
                COMPANION_RELATIONSHIPS,
                "동반자 관계를 목록에서 선택해주세요.",
            ),
            is_primary=payload.is_primary,
        )

    def _require_client(self, agent_id: str, client_id: int) -> None:
        if not self._client_repo.exists_active_client(agent_id, client_id):
            raise ValueError("고객 정보를 찾을 수 없습니다.")

    def create_note(self, agent_id: str, client_id: int, payload: ConsultationNoteCreate) -> ActionResult:
        try:
            self._require_client(agent_id, client_id)
            note_id = self._consultation_repo.create_note(agent_id, client_id, self._validate_note(payload))
        except (ValueError, sqlite3.Error) as error:
            logger.warning("note create failed client=%s: %s", client_id, error)
            return ActionResult.fail(f"상담내용 추가에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "CREATE", "consultation_note", note_id, {"client_id": client_id})
        return ActionResult.ok("상담내용이 성공적으로 추가되었습니다.", note_id=note_id)

    def update_note(self, agent_id: str, note_id: int | None, payload: ConsultationNoteCreate) -> ActionResult:
        try:
            if note_id is None:
                raise ValueError("상담내용 ID가 필요합니다.")
            if self._consultation_repo.update_note(agent_id, note_id, self._validate_note(payload)) == 0:
                raise ValueError("수정할 상담내용을 찾을 수 없습니다.")
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"상담내용 수정에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "UPDATE", "consultation_note", note_id, "note updated")
        return ActionResult.ok("상담내용이 성공적으로 수정되었습니다.")

    def delete_note(self, agent_id: str, note_id: int) -> ActionResult:
        try:
            if self._consultation_repo.delete_note(agent_id, note_id) == 0:
                raise ValueError("삭제할 상담내용을 찾을 수 없습니다.")
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"상담내용 삭제에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "DELETE", "consultation_note", note_id, "note deleted")
        return ActionResult.ok("상담내용이 성공적으로 삭제되었습니다.")

    def list_notes(self, agent_id: str, client_id: int) -> list[ConsultationNoteView]:
        return [
            ConsultationNoteView(
                id=row["id"],
                client_id=row["client_id"],
                consultation_date=row["consultation_date"],
                title=row["title"],
                content=row["content"],
                contract_info=row["contract_info"] or "",
                follow_up_date=row["follow_up_date"] or "",
                follow_up_notes=row["follow_up_notes"] or "",
                note_type=row["note_type"],
            )
            for row in self._consultation_repo.list_notes(agent_id, client_id)
        ]

    def create_companion(self, agent_id: str, client_id: int, payload: CompanionCreate) -> ActionResult:
        """Add a companion; marking one as primary clears the flag on the others."""
        try:
            self._require_client(agent_id, client_id)
            validated = self._validate_companion(payload)
            with self._client_repo.transaction():
                if validated.is_primary:
                    self._consultation_repo.clear_primary_companion(agent_id, client_id)
                companion_id = self._consultation_repo.create_companion(agent_id, client_id, validated)
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"상담동반자 추가에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "CREATE", "companion", companion_id, {"client_id": client_id})
        return ActionResult.ok("상담동반자가 성공적으로 추가되었습니다.", companion_id=companion_id)

    def update_companion(self, agent_id: str, companion_id: int | None, payload: CompanionCreate) -> ActionResult:
        try:
            if companion_id is None:
                raise ValueError("동반자 ID가 필요합니다.")
            validated = self._validate_companion(payload)
            client_id = self._consultation_repo.get_companion_client_id(agent_id, companion_id)
            if client_id is None:
                raise ValueError("수정할 상담동반자를 찾을 수 없습니다.")
            with self._client_repo.transaction():
                if validated.is_primary:
                    self._consultation_repo.clear_primary_companion(agent_id, client_id)
                self._consultation_repo.update_companion(agent_id, companion_id, validated)
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"상담동반자 수정에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "UPDATE", "companion", companion_id, "companion updated")
        return ActionResult.ok("상담동반자가 성공적으로 수정되었습니다.")

    def delete_companion(self, agent_id: str, companion_id: int) -> ActionResult:
        try:
            if self._consultation_repo.delete_companion(agent_id, companion_id) == 0:
                raise ValueError("삭제할 상담동반자를 찾을 수 없습니다.")
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"상담동반자 삭제에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "DELETE", "companion", companion_id, "companion deleted")
        return ActionResult.ok("상담동반자가 성공적으로 삭제되었습니다.")

    def list_companions(self, agent_id: str, client_id: int) -> list[CompanionView]:
        return [
            CompanionView(
                id=row["id"],
                client_id=row["client_id"],
                name=row["name"],
                phone=row["phone"] or "",
                relationship=row["relationship"] or "",
                is_primary=bool(row["is_primary"]),
            )
            for row in self._consultation_repo.list_companions(agent_id, client_id)
        ]
