"""Application dependency container."""

from __future__ import annotations

from dataclasses import dataclass

from agent_crm.core.config import AppConfig, ensure_runtime_keys, get_required_env, load_config
from agent_crm.core.crypto import CryptoService
from agent_crm.core.logging_setup import configure_logging
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


@dataclass
class ServiceContainer:
    """Wires repositories and services."""

    config: AppConfig
    client_service: ClientService
    consultation_service: ConsultationService
    tag_service: TagService
    opportunity_service: OpportunityService
    audit_repo: AuditRepository


def build_services(config: AppConfig, crypto: CryptoService) -> ServiceContainer:
    """Open the database, create the schema and wire every service."""
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)

    audit_repo = AuditRepository(pool)
    client_repo = ClientRepository(pool)
    tag_repo = TagRepository(pool)
    consultation_repo = ConsultationRepository(pool)

    client_service = ClientService(client_repo, tag_repo, audit_repo, crypto)
    return ServiceContainer(
        config=config,
        client_service=client_service,
        consultation_service=ConsultationService(consultation_repo, client_repo, audit_repo),
        tag_service=TagService(tag_repo, client_repo, audit_repo),
        opportunity_service=OpportunityService(client_service),
        audit_repo=audit_repo,
    )


def build_container() -> ServiceContainer:
    """Load config, set up logging and keys, then build services."""
    config = load_config()
    configure_logging(config.logging)
    ensure_runtime_keys(config.database.path)
    crypto = CryptoService.from_base64_key(get_required_env(config.encryption.key_env))
    return build_services(config, crypto)
