from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest
import requests

from blink_debit.core.client import BlinkDebitClient
from blink_debit.core.config import BlinkDebitConfig

BASE_URL = "https://blink.test"


def make_response(
    status: int,
    body: Any = None,
    *,
    headers: Optional[Dict[str, str]] = None,
    text: Optional[str] = None,
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.encoding = "utf-8"
    if text is not None:
        response._content = text.encode("utf-8")
    elif body is not None:
        response._content = json.dumps(body).encode("utf-8")
    else:
        response._content = b""
    if headers:
        response.headers.update(headers)
    return response


@dataclass
class RecordedRequest:
    method: str
    url: str
    headers: Dict[str, str]
    json: Any
    timeout: Any


@dataclass
class FakeSession:
    """Stands in for ``requests.Session``: replays queued replies and records requests."""

    replies: List[Any] = field(default_factory=list)
    requests: List[RecordedRequest] = field(default_factory=list)
    headers: Dict[str, str] = field(default_factory=dict)
    closed: bool = False

    def queue(self, *replies: Any) -> "FakeSession":
        self.replies.extend(replies)
        return self

    def request(self, method, url, headers=None, json=None, timeout=None):
        self.requests.append(
            RecordedRequest(method=method, url=url, headers=dict(headers or {}), json=json, timeout=timeout)
        )
        if not self.replies:
            raise AssertionError(f"Unexpected request {method} {url}")
        reply = self.replies.pop(0)
        if isinstance(reply, BaseException):
            raise reply
        return reply

    def close(self) -> None:
        self.closed = True


def consent_payload(status: str, consent_id: Optional[str] = None, **extra: Any) -> Dict[str, Any]:
    payload = {
        "consent_id": consent_id or str(uuid.uuid4()),
        "status": status,
        "creation_timestamp": "2023-03-23T22:10:58.123456789Z",
        "status_updated_timestamp": "2023-03-23T22:11:02.5Z",
        "detail": {
            "type": "single",
            "flow": {
                "detail": {
                    "type": "redirect",
                    "bank": "PNZ",
                    "redirect_uri": "https://merchant.test/return",
                    "redirect_to_app": False,
                }
            },
            "pcr": {"particulars": "particulars", "code": "code", "reference": "reference"},
            "amount": {"total": "1.25", "currency": "NZD"},
        },
        "payments": [],
    }
    payload.update(extra)
    return payload


def quick_payment_payload(status: str, quick_payment_id: Optional[str] = None) -> Dict[str, Any]:
    quick_payment_id = quick_payment_id or str(uuid.uuid4())
    return {
        "quick_payment_id": quick_payment_id,
        "consent": consent_payload(status, quick_payment_id),
    }


def payment_payload(status: str, payment_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "payment_id": payment_id or str(uuid.uuid4()),
        "status": status,
        "type": "single",
        "creation_timestamp": "2023-03-23T22:12:00Z",
        "status_updated_timestamp": "2023-03-23T22:12:01.000Z",
        "accepted_reason": None,
        "refunds": [],
    }


@pytest.fixture
def config() -> BlinkDebitConfig:
    return BlinkDebitConfig(
        client_id="client-id",
        client_secret="client-secret",
        debit_url=BASE_URL,
        access_token="seeded-token",
        active_profile="production",
    )


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def sleeps() -> List[float]:
    return []


@pytest.fixture
def client(config: BlinkDebitConfig, session: FakeSession, sleeps: List[float]) -> BlinkDebitClient:
    return BlinkDebitClient(config, session=session, sleep=sleeps.append)
