"""Opportunity wizard model."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

INSURANCE_TYPES = {
    "auto": "자동차보험",
    "life": "생명보험",
    "health": "건강보험",
    "home": "주택보험",
    "business": "사업자보험",
}


class WizardStep(str, Enum):
    SELECT_PRODUCT = "select_product"
    DETAILS = "details"
    CONFIRM = "confirm"


WIZARD_ORDER = (WizardStep.SELECT_PRODUCT, WizardStep.DETAILS, WizardStep.CONFIRM)


def insurance_type_name(insurance_type: str) -> str:
    return INSURANCE_TYPES.get(insurance_type, insurance_type)


@dataclass
class OpportunityWizard:
    """Linear select -> details -> confirm flow for a new sales opportunity."""

    step: WizardStep = WizardStep.SELECT_PRODUCT
    insurance_type: str = ""
    notes: str = ""
    product_name: str = ""
    insurance_company: str = ""
    monthly_premium: Decimal | None = None
    expected_commission: Decimal | None = None

    def select_type(self, insurance_type: str) -> None:
        if self.step is not WizardStep.SELECT_PRODUCT:
            raise ValueError("상품 선택 단계가 아닙니다.")
        if insurance_type not in INSURANCE_TYPES:
            raise ValueError("보험 상품 타입을 선택해주세요.")
        self.insurance_type = insurance_type

    def set_details(
        self,
        notes: str = "",
        product_name: str = "",
        insurance_company: str = "",
        monthly_premium: Decimal | None = None,
        expected_commission: Decimal | None = None,
    ) -> None:
        if self.step is not WizardStep.DETAILS:
            raise ValueError("상세 입력 단계가 아닙니다.")
        for amount in (monthly_premium, expected_commission):
            if amount is not None and amount < 0:
                raise ValueError("금액은 0 이상이어야 합니다.")
        self.notes = notes.strip()
        self.product_name = product_name.strip()
        self.insurance_company = insurance_company.strip()
        self.monthly_premium = monthly_premium
        self.expected_commission = expected_commission

    def next(self) -> WizardStep:
        if self.step is WizardStep.SELECT_PRODUCT and not self.insurance_type:
            raise ValueError("보험 상품 타입을 선택해주세요.")
        index = WIZARD_ORDER.index(self.step)
        if index < len(WIZARD_ORDER) - 1:
            self.step = WIZARD_ORDER[index + 1]
        return self.step

    def back(self) -> WizardStep:
        index = WIZARD_ORDER.index(self.step)
        if index > 0:
            self.step = WIZARD_ORDER[index - 1]
        return self.step

    def reset(self) -> None:
        self.step = WizardStep.SELECT_PRODUCT
        self.insurance_type = ""
        self.notes = ""
        self.product_name = ""
        self.insurance_company = ""
        self.monthly_premium = None
        self.expected_commission = None

    def build_notes(self) -> str:
        """Render the note block attached to the client when the opportunity is created."""
        lines = [f"[{insurance_type_name(self.insurance_type)} 영업]"]
        if self.product_name or self.insurance_company:
            lines.append("상품 정보:")
            if self.product_name:
                lines.append(f"- 상품명: {self.product_name}")
            if self.insurance_company:
                lines.append(f"- 보험회사: {self.insurance_company}")
            if self.monthly_premium:
                lines.append(f"- 월 납입료: {self.monthly_premium:,.0f}원")
            if self.expected_commission:
                lines.append(f"- 예상 수수료: {self.expected_commission:,.0f}원")
        text = "\n".join(lines)
        if self.notes:
            return f"{text}\n\n영업 메모:\n{self.notes}"
        return f"{text}\n\n새로운 영업 기회"
