from __future__ import annotations

import pytest

from agent_crm.main import run


def test_rrn_command(capsys) -> None:
    assert run(["--today", "2024-06-01", "rrn", "771111-1234567"]) == 0

    out = capsys.readouterr().out
    assert "771111-1******" in out
    assert "1977년 11월 11일" in out
    assert "남성" in out
    assert "standard age: 46" in out


def test_rrn_command_reports_error(capsys) -> None:
    assert run(["--today", "2024-06-01", "rrn", "771111-3234567"]) == 1

    assert "미래 날짜로 입력되었습니다." in capsys.readouterr().out


def test_age_and_bmi_commands(capsys) -> None:
    assert run(["--today", "2024-01-01", "age", "1990-06-15", "--convention", "korean"]) == 0
    assert capsys.readouterr().out.strip() == "35"

    assert run(["bmi", "170", "70"]) == 0
    assert "BMI 24.2 (정상체중" in capsys.readouterr().out

    assert run(["bmi", "0", "70"]) == 1


def test_invalid_date_argument() -> None:
    with pytest.raises(SystemExit):
        run(["age", "15/06/1990"])
