from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

import pytest

from blink_debit.core.client import BlinkDebitClient
from conftest import FakeSession

SCRIPT = Path(__file__).resolve().parents[1] / "examples" / "await_quick_payment.py"


@pytest.fixture
def script():
    spec = importlib.util.spec_from_file_location("await_quick_payment", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def fake_session(script, monkeypatch):
    session = FakeSession()

    def factory(*, config, **_kwargs):
        return BlinkDebitClient(config, session=session, sleep=lambda _: None)

    monkeypatch.setattr(script, "create_blink_debit_client", factory)
    return session


def set_argv(monkeypatch, tmp_path, *args):
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "await_quick_payment.py",
            "--env-file",
            str(tmp_path / "missing.env"),
            "--set",
            "BLINKPAY_CLIENT_ID=script-id",
            "--set",
            "BLINKPAY_CLIENT_SECRET=script-secret",
            "--set",
            "BLINKPAY_ACCESS_TOKEN=script-token",
            "--set",
            "BLINKPAY_DEBIT_URL=https://blink.test",
            *args,
        ],
    )


def test_unknown_bank_is_logged_not_raised(script, fake_session, monkeypatch, tmp_path):
    set_argv(monkeypatch, tmp_path, "--bank", "Piggy Bank")
    assert script.main() == 1
    assert fake_session.requests == []


def test_invalid_amount_is_logged_not_raised(script, fake_session, monkeypatch, tmp_path):
    set_argv(monkeypatch, tmp_path, "--amount", "0")
    assert script.main() == 1
    assert fake_session.requests == []


def test_zero_max_wait_is_a_usage_error(script, fake_session, monkeypatch, tmp_path):
    set_argv(monkeypatch, tmp_path, "--max-wait", "0")
    with pytest.raises(SystemExit):
        script.main()
    assert fake_session.requests == []
