"""Command line entry point."""

from __future__ import annotations

import argparse
import sys
from datetime import date

from agent_crm.core.age import AgeConvention, calculate_age
from agent_crm.core.bmi import bmi_report, ideal_weight_range
from agent_crm.core.resident_id import (
    FEMALE,
    MALE,
    format_birth_date,
    format_gender,
    mask_resident_id,
    parse_resident_id,
)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as error:
        raise argparse.ArgumentTypeError(f"YYYY-MM-DD 형식이어야 합니다: {value}") from error


def _cmd_rrn(args: argparse.Namespace) -> int:
    parsed = parse_resident_id(args.resident_id, today=args.today)
    print(f"주민등록번호: {mask_resident_id(args.resident_id)}")
    if not parsed.is_valid:
        print(f"[ERROR] {parsed.error_message}")
        return 1
    print(f"생년월일: {format_birth_date(parsed.birth_date)}")
    print(f"성별: {format_gender(parsed.gender)}")
    for convention in AgeConvention:
        print(f"{convention.value} age: {calculate_age(parsed.birth_date, convention, today=args.today)}")
    return 0


def _cmd_age(args: argparse.Namespace) -> int:
    print(calculate_age(args.birth_date, args.convention, today=args.today))
    return 0


def _cmd_bmi(args: argparse.Namespace) -> int:
    report = bmi_report(args.height, args.weight, args.gender)
    if report is None:
        print("[ERROR] 키와 몸무게는 0보다 큰 숫자여야 합니다.")
        return 1
    print(f"BMI {report.value} ({report.status}, {report.detail})")
    ideal = ideal_weight_range(args.height, args.gender)
    if ideal:
        print(f"정상 체중 범위: {ideal[0]}~{ideal[1]}kg")
    return 0


def _cmd_cleanup_logs(args: argparse.Namespace) -> int:
    from agent_crm.core.container import build_container

    container = build_container()
    removed = container.audit_repo.cleanup_old_logs(container.config.logging.retention_days)
    print(f"Cleaned old logs: {removed}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="agent-crm", description="Client detail helpers for insurance agents.")
    parser.add_argument("--today", type=_parse_date, default=None, help="Override today's date (YYYY-MM-DD).")
    commands = parser.add_subparsers(dest="command", required=True)

    rrn = commands.add_parser("rrn", help="Parse a resident registration number.")
    rrn.add_argument("resident_id")
    rrn.set_defaults(handler=_cmd_rrn)

    age = commands.add_parser("age", help="Calculate age from a birth date.")
    age.add_argument("birth_date", type=_parse_date)
    age.add_argument(
        "--convention",
        choices=[convention.value for convention in AgeConvention],
        default=AgeConvention.STANDARD.value,
    )
    age.set_defaults(handler=_cmd_age)

    bmi = commands.add_parser("bmi", help="Calculate and classify BMI.")
    bmi.add_argument("height", help="Height in cm.")
    bmi.add_argument("weight", help="Weight in kg.")
    bmi.add_argument("--gender", choices=[MALE, FEMALE], default=None)
    bmi.set_defaults(handler=_cmd_bmi)

    cleanup = commands.add_parser("cleanup-logs", help="Delete audit logs past retention.")
    cleanup.set_defaults(handler=_cmd_cleanup_logs)
    return parser


def run(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(run())
