"""Tag management for clients."""

from __future__ import annotations

import sqlite3

from agent_crm.core.validation import validate_hex_color, validate_max_length, validate_required_text
from agent_crm.models.result import ActionResult
from agent_crm.models.tag import TagCreate, TagView
from agent_crm.repositories.audit_repository import AuditRepository
from agent_crm.repositories.client_repository import ClientRepository
from agent_crm.repositories.tag_repository import TagRepository

TAG_NAME_MAX_LENGTH = 20


class TagService:
    """Coordinates tag CRUD and client tag assignment."""

    def __init__(self, tag_repo: TagRepository, client_repo: ClientRepository, audit_repo: AuditRepository):
        self._tag_repo = tag_repo
        self._client_repo = client_repo
        self._audit_repo = audit_repo

    @staticmethod
    def _validate(payload: TagCreate) -> TagCreate:
        return TagCreate(
            name=validate_required_text(payload.name, "태그 이름", TAG_NAME_MAX_LENGTH),
            color=validate_hex_color(payload.color),
            description=validate_max_length(payload.description, "태그 설명", 100),
        )

    def create_tag(self, agent_id: str, payload: TagCreate) -> ActionResult:
        try:
            tag_id = self._tag_repo.create_tag(agent_id, self._validate(payload))
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"태그 생성에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "CREATE", "tag", tag_id, {"name": payload.name.strip()})
        return ActionResult.ok("태그가 생성되었습니다.", tag_id=tag_id)

    def update_tag(self, agent_id: str, tag_id: int, payload: TagCreate) -> ActionResult:
        try:
            if self._tag_repo.update_tag(agent_id, tag_id, self._validate(payload)) == 0:
                raise ValueError("수정할 태그를 찾을 수 없습니다.")
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"태그 수정에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "UPDATE", "tag", tag_id, {"name": payload.name.strip()})
        return ActionResult.ok("태그가 수정되었습니다.")

    def delete_tag(self, agent_id: str, tag_id: int) -> ActionResult:
        try:
            if self._tag_repo.delete_tag(agent_id, tag_id) == 0:
                raise ValueError("삭제할 태그를 찾을 수 없습니다.")
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"태그 삭제에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "DELETE", "tag", tag_id, "tag deleted")
        return ActionResult.ok("태그가 삭제되었습니다.")

    def list_tags(self, agent_id: str) -> list[TagView]:
        return [TagView(**row) for row in self._tag_repo.list_tags(agent_id)]

    def list_client_tags(self, agent_id: str, client_id: int) -> list[TagView]:
        return [TagView(**row) for row in self._tag_repo.list_client_tags(agent_id, client_id)]

    def set_client_tags(self, agent_id: str, client_id: int, tag_ids: list[int]) -> ActionResult:
        """Replace the client's tags with exactly ``tag_ids``."""
        unique_ids = sorted(set(tag_ids))
        try:
            if not self._client_repo.exists_active_client(agent_id, client_id):
                raise ValueError("고객 정보를 찾을 수 없습니다.")
            if self._tag_repo.count_owned_tags(agent_id, unique_ids) != len(unique_ids):
                raise ValueError("존재하지 않는 태그가 포함되어 있습니다.")
            self._tag_repo.replace_client_tags(client_id, unique_ids)
        except (ValueError, sqlite3.Error) as error:
            return ActionResult.fail(f"태그 저장에 실패했습니다: {error}", error=str(error))
        self._audit_repo.record(agent_id, "UPDATE", "client_tags", client_id, {"tag_ids": unique_ids})
        return ActionResult.ok("태그가 저장되었습니다.", tag_ids=unique_ids)
