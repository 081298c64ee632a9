"""
Public, high-level helpers for talking to the Blink Debit API.
"""

from __future__ import annotations

import time
from typing import Callable, Mapping, Optional

import requests

from .core.client import BlinkDebitClient
from .core.config import (
    BlinkDebitConfig,
    BlinkParameters,
    ConfigError,
    load_blink_config,
)
from .core.retry import RetryPolicy

__all__ = [
    "BlinkDebitClient",
    "BlinkDebitConfig",
    "BlinkParameters",
    "ConfigError",
    "create_blink_debit_client",
    "load_blink_config",
]


def create_blink_debit_client(
    *,
    config: Optional[BlinkDebitConfig] = None,
    session: Optional[requests.Session] = None,
    retry_policy: Optional[RetryPolicy] = None,
    sleep: Callable[[float], None] = time.sleep,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[BlinkParameters] = None,
    debit_url: Optional[str] = None,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    access_token: Optional[str] = None,
    timeout_seconds: Optional[int | str] = None,
    max_connections: Optional[int | str] = None,
    retry_enabled: Optional[bool | str] = None,
    active_profile: Optional[str] = None,
) -> BlinkDebitClient:
    """
    Construct a :class:`BlinkDebitClient`.

    Callers can either supply a ready-made :class:`BlinkDebitConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            debit_url,
            client_id,
            client_secret,
            access_token,
            timeout_seconds,
            max_connections,
            retry_enabled,
            active_profile,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built BlinkDebitConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_blink_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            debit_url=debit_url,
            client_id=client_id,
            client_secret=client_secret,
            access_token=access_token,
            timeout_seconds=timeout_seconds,
            max_connections=max_connections,
            retry_enabled=retry_enabled,
            active_profile=active_profile,
        )
    return BlinkDebitClient(cfg, session=session, retry_policy=retry_policy, sleep=sleep)
