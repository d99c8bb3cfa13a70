"""Integration-like tests for client detail services."""

from __future__ import annotations

import json
import sqlite3
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

import pytest

from agent_crm.core.config import AppConfig, DatabaseConfig, EncryptionConfig, LoggingConfig
from agent_crm.core.container import build_services
from agent_crm.core.crypto import CryptoService
from agent_crm.models.client import CheckupPurposes, ClientEditForm, InterestCategories, MedicalHistory
from agent_crm.models.consultation import CompanionCreate, ConsultationNoteCreate
from agent_crm.models.opportunity import OpportunityWizard
from agent_crm.models.tag import TagCreate
from agent_crm.repositories.audit_repository import AuditRepository
from agent_crm.repositories.client_repository import ClientRepository
from agent_crm.repositories.consultation_repository import ConsultationRepository
from agent_crm.repositories.db_pool import ThreadLocalConnection
from agent_crm.repositories.schema import initialize_schema
from agent_crm.repositories.tag_repository import TagRepository
from agent_crm.services.client_service import ClientService
from agent_crm.services.consultation_service import ConsultationService
from agent_crm.services.opportunity_service import OpportunityService
from agent_crm.services.tag_service import TagService

AGENT = "agent-1"
OTHER_AGENT = "agent-2"
TODAY = date(2024, 6, 1)


@dataclass
class Services:
    clients: ClientService
    notes: ConsultationService
    tags: TagService
    opportunities: OpportunityService
    audit: AuditRepository


def make_config(tmp_path) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(
            path=str(tmp_path / "test.db"),
            key_env="AGENT_CRM_DB_KEY",
            allow_sqlite_fallback=True,
        ),
        encryption=EncryptionConfig(key_env="AGENT_CRM_ENCRYPTION_KEY"),
        logging=LoggingConfig(retention_days=1095),
    )


@pytest.fixture
def services(tmp_path) -> Services:
    pool = ThreadLocalConnection(make_config(tmp_path))
    initialize_schema(pool)

    crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())
    audit_repo = AuditRepository(pool)
    client_repo = ClientRepository(pool)
    tag_repo = TagRepository(pool)

    client_service = ClientService(client_repo, tag_repo, audit_repo, crypto, today=lambda: TODAY)
    return Services(
        clients=client_service,
        notes=ConsultationService(ConsultationRepository(pool), client_repo, audit_repo),
        tags=TagService(tag_repo, client_repo, audit_repo),
        opportunities=OpportunityService(client_service),
        audit=audit_repo,
    )


def create_client(services: Services, **overrides) -> int:
    form = ClientEditForm(full_name="홍길동", phone="010-1234-5678", **overrides)
    result = services.clients.create_client(AGENT, form)
    assert result.success, result.message
    return result.data["client_id"]


def test_create_and_get_client_masks_resident_id(services: Services) -> None:
    client_id = create_client(
        services,
        ssn_front="771111",
        ssn_back="1234567",
        height="175",
        weight="70",
    )

    client = services.clients.get_client(AGENT, client_id)

    assert client is not None
    assert client.full_name == "홍길동"
    assert client.birth_date == date(1977, 11, 11)
    assert client.gender == "male"
    assert client.ssn_masked == "771111-1******"
    assert services.clients.get_client(OTHER_AGENT, client_id) is None


def test_create_client_rejects_invalid_form(services: Services) -> None:
    result = services.clients.create_client(AGENT, ClientEditForm(full_name="", phone="123"))

    assert not result.success
    assert result.input_error
    assert len(result.data["errors"]) == 2


def test_update_client_derives_identity(services: Services) -> None:
    client_id = create_client(services)

    result = services.clients.update_client(
        AGENT,
        client_id,
        ClientEditForm(full_name="홍길순", phone="01098765432", ssn_front="900101", ssn_back="2234567"),
    )

    assert result.success
    assert result.data == {"birth_date": "1990-01-01", "gender": "female"}
    client = services.clients.get_client(AGENT, client_id)
    assert client.full_name == "홍길순"
    assert client.gender == "female"

    logs = services.audit.list_logs(AGENT, entity="client", entity_id=client_id)
    changes = json.loads(logs[0]["detail"])["changes"]
    assert changes["full_name"] == {"before": "홍길동", "after": "홍길순"}
    assert changes["ssn"]["after"] == "900101-2******"


def test_update_client_with_future_resident_id_explains_code(services: Services) -> None:
    client_id = create_client(services)

    result = services.clients.update_client(
        AGENT,
        client_id,
        ClientEditForm(full_name="홍길동", ssn_front="771111", ssn_back="3234567"),
    )

    assert not result.success
    assert result.input_error
    assert result.message.startswith("1977년생은 성별코드가 1(남성) 또는 2(여성)이어야 합니다.")
    assert services.clients.get_client(AGENT, client_id).birth_date is None


def test_incomplete_resident_id_keeps_stored_identity(services: Services) -> None:
    client_id = create_client(services, ssn_front="771111", ssn_back="1234567")

    result = services.clients.update_client(
        AGENT,
        client_id,
        ClientEditForm(full_name="홍길동", ssn_front="771111", ssn_back="12"),
    )

    assert result.success
    assert services.clients.get_client(AGENT, client_id).birth_date == date(1977, 11, 11)


def test_duplicate_resident_id_is_rejected(services: Services) -> None:
    create_client(services, ssn_front="771111", ssn_back="1234567")

    result = services.clients.create_client(
        AGENT,
        ClientEditForm(full_name="김철수", ssn_front="771111", ssn_back="1234567"),
    )

    assert not result.success
    assert "이미 등록된 주민등록번호" in result.message


def test_referrer_must_be_another_active_client(services: Services) -> None:
    referrer_id = create_client(services)
    client_id = create_client(services, referred_by_id=str(referrer_id))

    assert services.clients.get_client(AGENT, client_id).referred_by_id == referrer_id

    result = services.clients.update_client(
        AGENT,
        client_id,
        ClientEditForm(full_name="홍길동", referred_by_id=str(client_id)),
    )
    assert not result.success
    assert "자기 자신" in result.message


def test_display_values(services: Services) -> None:
    client_id = create_client(services, ssn_front="900615", ssn_back="2234567", height="160", weight="60")
    client = services.clients.get_client(AGENT, client_id)

    values = services.clients.display_values(client)

    assert values["ages"] == {"standard": 33, "korean": 35, "insurance": 33}
    assert values["bmi"].value == 23.4
    assert values["bmi"].status == "과체중"
    assert values["ideal_weight"] == (47, 59)


def test_delete_client_hides_it(services: Services) -> None:
    client_id = create_client(services)
    assert [client.id for client in services.clients.list_clients(AGENT)] == [client_id]

    assert services.clients.delete_client(AGENT, client_id).success
    assert services.clients.list_clients(AGENT) == []
    assert services.clients.get_client(AGENT, client_id) is None
    assert not services.clients.delete_client(AGENT, client_id).success


def test_failed_audit_write_keeps_committed_change(services: Services, monkeypatch) -> None:
    def fail_add_log(*args, **kwargs) -> None:
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(services.audit, "add_log", fail_add_log)

    form = ClientEditForm(full_name="홍길동", ssn_front="771111", ssn_back="1234567")
    created = services.clients.create_client(AGENT, form)
    assert created.success
    client_id = created.data["client_id"]
    assert services.clients.get_client(AGENT, client_id).full_name == "홍길동"

    assert services.clients.update_client(AGENT, client_id, ClientEditForm(full_name="김철수")).success
    assert services.tags.create_tag(AGENT, TagCreate(name="VIP")).success
    note = services.notes.create_note(AGENT, client_id, ConsultationNoteCreate("2024-05-30", "첫 상담", "내용"))
    assert note.success
    assert services.clients.delete_client(AGENT, client_id).success
    assert not services.audit.record(AGENT, "UPDATE", "client", client_id, {"event": "noop"})

    monkeypatch.undo()
    assert services.audit.list_logs(AGENT) == []


def test_client_repository_transaction_rolls_back(tmp_path) -> None:
    pool = ThreadLocalConnection(make_config(tmp_path))
    initialize_schema(pool)
    repo = ClientRepository(pool)

    with pytest.raises(RuntimeError):
        with repo.transaction() as connection:
            assert connection is pool.get_connection()
            repo.create_client(AGENT, {"full_name": "홍길동"})
            raise RuntimeError("abort")

    assert repo.list_clients(AGENT) == []


def test_update_stage_appends_opportunity_notes(services: Services) -> None:
    client_id = create_client(services, notes="기존 메모")
    stages = services.clients.list_stages(AGENT)

    result = services.clients.update_stage(AGENT, client_id, stages[1]["id"], "추가 메모")

    assert result.success
    assert result.message == "영업 기회가 성공적으로 생성되었습니다."
    client = services.clients.get_client(AGENT, client_id)
    assert client.current_stage_id == stages[1]["id"]
    assert client.notes == "기존 메모\n\n--- 새 영업 기회 (2024. 06. 01.) ---\n추가 메모"


def test_update_stage_requires_stage(services: Services) -> None:
    client_id = create_client(services)

    result = services.clients.update_stage(AGENT, client_id, None)

    assert not result.success
    assert "대상 단계 ID가 필요합니다." in result.message
    assert not services.clients.update_stage(AGENT, client_id, 9999).success


def test_tab_sections_round_trip(services: Services) -> None:
    client_id = create_client(services)

    assert services.clients.get_medical_history(AGENT, client_id) == MedicalHistory()

    saved = services.clients.update_medical_history(
        AGENT,
        client_id,
        MedicalHistory(has_recent_diagnosis=True, recent_medical_details="고혈압"),
    )
    assert saved.success
    assert saved.message == "병력사항이(가) 성공적으로 업데이트되었습니다."
    history = services.clients.get_medical_history(AGENT, client_id)
    assert history.has_recent_diagnosis
    assert history.recent_medical_details == "고혈압"

    services.clients.update_checkup_purposes(AGENT, client_id, CheckupPurposes(needs_death_benefit=True))
    services.clients.update_interest_categories(AGENT, client_id, InterestCategories(interested_in_cancer=True))
    assert services.clients.get_checkup_purposes(AGENT, client_id).needs_death_benefit
    assert services.clients.get_interest_categories(AGENT, client_id).interested_in_cancer

    assert services.clients.get_medical_history(OTHER_AGENT, client_id) is None
    assert not services.clients.update_medical_history(OTHER_AGENT, client_id, MedicalHistory()).success


def test_tags_crud_and_assignment(services: Services) -> None:
    client_id = create_client(services)

    vip = services.tags.create_tag(AGENT, TagCreate(name="VIP", color="#ff0000"))
    family = services.tags.create_tag(AGENT, TagCreate(name="가족"))
    assert vip.success and family.success
    assert not services.tags.create_tag(AGENT, TagCreate(name="VIP")).success
    assert not services.tags.create_tag(AGENT, TagCreate(name="a" * 21)).success
    assert not services.tags.create_tag(AGENT, TagCreate(name="bad", color="red")).success

    vip_id = vip.data["tag_id"]
    family_id = family.data["tag_id"]
    result = services.tags.set_client_tags(AGENT, client_id, [family_id, vip_id, vip_id])
    assert result.success
    assert result.data["tag_ids"] == sorted([vip_id, family_id])
    assert services.clients.get_client(AGENT, client_id).tags == ["VIP", "가족"]
    assert services.tags.list_tags(AGENT)[0].color == "#FF0000"

    other = services.tags.create_tag(OTHER_AGENT, TagCreate(name="VIP"))
    assert other.success
    refused = services.tags.set_client_tags(AGENT, client_id, [other.data["tag_id"]])
    assert not refused.success
    assert "존재하지 않는 태그" in refused.message

    assert services.tags.set_client_tags(AGENT, client_id, []).success
    assert services.tags.list_client_tags(AGENT, client_id) == []

    assert services.tags.update_tag(AGENT, vip_id, TagCreate(name="VVIP")).success
    assert services.tags.delete_tag(AGENT, family_id).success
    assert [tag.name for tag in services.tags.list_tags(AGENT)] == ["VVIP"]


def test_consultation_notes(services: Services) -> None:
    client_id = create_client(services)

    missing = services.notes.create_note(AGENT, client_id, ConsultationNoteCreate("", "제목", "내용"))
    assert not missing.success

    created = services.notes.create_note(
        AGENT,
        client_id,
        ConsultationNoteCreate("2024-05-30", "첫 상담", "보장 분석 요청", follow_up_date="2024-06-10"),
    )
    assert created.success
    assert created.message == "상담내용이 성공적으로 추가되었습니다."

    note_id = created.data["note_id"]
    assert services.notes.update_note(AGENT, note_id, ConsultationNoteCreate("2024-05-30", "수정", "내용")).success
    assert not services.notes.update_note(AGENT, None, ConsultationNoteCreate("2024-05-30", "수정", "내용")).success
    assert not services.notes.update_note(OTHER_AGENT, note_id, ConsultationNoteCreate("2024-05-30", "x", "y")).success

    notes = services.notes.list_notes(AGENT, client_id)
    assert [note.title for note in notes] == ["수정"]

    assert services.notes.delete_note(AGENT, note_id).success
    assert services.notes.list_notes(AGENT, client_id) == []


def test_companions_keep_single_primary(services: Services) -> None:
    client_id = create_client(services)

    assert not services.notes.create_companion(AGENT, client_id, CompanionCreate(name=" ")).success
    assert not services.notes.create_companion(AGENT, client_id, CompanionCreate("김영희", relationship="이웃")).success

    first = services.notes.create_companion(AGENT, client_id, CompanionCreate("김영희", relationship="배우자", is_primary=True))
    second = services.notes.create_companion(AGENT, client_id, CompanionCreate("홍민수", relationship="자녀", is_primary=True))
    assert first.success and second.success

    primaries = [c.name for c in services.notes.list_companions(AGENT, client_id) if c.is_primary]
    assert primaries == ["홍민수"]

    assert services.notes.update_companion(
        AGENT,
        first.data["companion_id"],
        CompanionCreate("김영희", relationship="배우자", is_primary=True),
    ).success
    primaries = [c.name for c in services.notes.list_companions(AGENT, client_id) if c.is_primary]
    assert primaries == ["김영희"]

    assert services.notes.delete_companion(AGENT, second.data["companion_id"]).success
    assert len(services.notes.list_companions(AGENT, client_id)) == 1


def test_opportunity_wizard_moves_client_to_first_stage(services: Services) -> None:
    client_id = create_client(services)
    wizard = OpportunityWizard()

    assert not services.opportunities.submit(AGENT, client_id, wizard).success

    wizard.select_type("auto")
    wizard.next()
    wizard.set_details(
        notes="갱신 시기 확인",
        product_name="다이렉트 자동차",
        insurance_company="테스트손보",
        monthly_premium=Decimal("50000"),
    )
    wizard.next()

    result = services.opportunities.submit(AGENT, client_id, wizard)

    assert result.success
    stages = services.clients.list_stages(AGENT)
    client = services.clients.get_client(AGENT, client_id)
    assert client.current_stage_id == stages[0]["id"]
    assert client.notes.startswith("[자동차보험 영업]\n상품 정보:\n- 상품명: 다이렉트 자동차")
    assert "- 월 납입료: 50,000원" in client.notes
    assert client.notes.endswith("영업 메모:\n갱신 시기 확인")
    assert wizard.insurance_type == ""


def test_failed_opportunity_keeps_wizard_state(services: Services) -> None:
    wizard = OpportunityWizard()
    wizard.select_type("life")
    wizard.next()
    wizard.next()

    result = services.opportunities.submit(AGENT, 9999, wizard)

    assert not result.success
    assert result.message.startswith("영업 기회 생성에 실패했습니다")
    assert wizard.insurance_type == "life"


def test_build_services_wires_container(tmp_path) -> None:
    crypto = CryptoService.from_base64_key(CryptoService.generate_base64_key())

    container = build_services(make_config(tmp_path), crypto)

    result = container.client_service.create_client(AGENT, ClientEditForm(full_name="홍길동"))
    assert result.success
    assert container.audit_repo.list_logs(AGENT)[0]["action"] == "CREATE"
    assert container.audit_repo.cleanup_old_logs(container.config.logging.retention_days) == 0
