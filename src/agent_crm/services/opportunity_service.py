"""Creates sales opportunities by moving a client into the pipeline."""

from __future__ import annotations

import logging
from typing import Any

from agent_crm.models.opportunity import OpportunityWizard, WizardStep
from agent_crm.models.result import ActionResult
from agent_crm.services.client_service import ClientService

logger = logging.getLogger(__name__)

FIRST_STAGE_NAME = "첫 상담"


def pick_first_stage(stages: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Prefer the first-consultation stage, then any consultation stage, then the first one."""
    for predicate in (
        lambda stage: stage["name"] == FIRST_STAGE_NAME,
        lambda stage: "상담" in stage["name"],
        lambda stage: True,
    ):
        for stage in stages:
            if predicate(stage):
                return stage
    return None


class OpportunityService:
    def __init__(self, client_service: ClientService):
        self._client_service = client_service

    def submit(
        self,
        agent_id: str,
        client_id: int,
        wizard: OpportunityWizard,
        stage_id: int | None = None,
    ) -> ActionResult:
        """Finish the wizard; it is reset only when the stage move succeeds."""
        if wizard.step is not WizardStep.CONFIRM:
            return ActionResult.fail("영업 기회 입력을 마친 뒤 확인해주세요.", input_error=True)
        if not wizard.insurance_type:
            return ActionResult.fail("보험 상품 타입을 선택해주세요.", input_error=True)

        if stage_id is None:
            stage = pick_first_stage(self._client_service.list_stages(agent_id))
            if stage is None:
                return ActionResult.fail("파이프라인의 첫 번째 단계를 찾을 수 없습니다.")
            stage_id = stage["id"]

        result = self._client_service.update_stage(agent_id, client_id, stage_id, wizard.build_notes())
        if result.success:
            logger.info("opportunity created client=%s type=%s", client_id, wizard.insurance_type)
            wizard.reset()
        return result
