"""
Configuration objects and helpers for the Blink Debit client.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .environment import build_environment
from .retry import RetryPolicy

__all__ = [
    "BlinkDebitConfig",
    "BlinkParameters",
    "ConfigError",
    "DEFAULT_DEBIT_URL",
    "load_blink_config",
]

DEFAULT_DEBIT_URL = "https://sandbox.debit.blinkpay.co.nz"

logger = logging.getLogger(__name__)

_DEBUG_PROFILES = re.compile(r"local|dev|test")

_PARAMETER_TO_ENV_KEY = {
    "debit_url": "BLINKPAY_DEBIT_URL",
    "client_id": "BLINKPAY_CLIENT_ID",
    "client_secret": "BLINKPAY_CLIENT_SECRET",
    "access_token": "BLINKPAY_ACCESS_TOKEN",
    "timeout_seconds": "BLINKPAY_TIMEOUT_SECONDS",
    "max_connections": "BLINKPAY_MAX_CONNECTIONS",
    "retry_enabled": "BLINKPAY_RETRY_ENABLED",
    "active_profile": "BLINKPAY_ACTIVE_PROFILE",
}

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class BlinkParameters:
    """
    Explicit parameter bundle for constructing :class:`BlinkDebitConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_blink_config`.
    """

    debit_url: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    access_token: Optional[str] = None
    timeout_seconds: Optional[int | str] = None
    max_connections: Optional[int | str] = None
    retry_enabled: Optional[bool | str] = None
    active_profile: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[BlinkParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:
            raise TypeError(f"Unknown Blink Debit parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


class ConfigError(Exception):
    """Raised when the supplied configuration is invalid."""


def _normalize_url(raw_url: str) -> str:
    url = raw_url.strip().rstrip("/")
    if not url:
        raise ConfigError("BLINKPAY_DEBIT_URL must not be empty")
    if not url.startswith(("https://", "http://")):
        raise ConfigError("BLINKPAY_DEBIT_URL must be an http(s) URL")
    return url


def _require_text(values: Mapping[str, str], key: str) -> str:
    value = (values.get(key) or "").strip()
    if not value:
        raise ConfigError(f"{key} must be provided")
    return value


def _positive_int(values: Mapping[str, str], key: str, default: int) -> int:
    raw = values.get(key)
    if raw is None or not str(raw).strip():
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got '{raw}'") from exc
    if parsed <= 0:
        raise ConfigError(f"{key} must be greater than zero")
    return parsed


def _boolean(values: Mapping[str, str], key: str, default: bool) -> bool:
    raw = values.get(key)
    if raw is None or not str(raw).strip():
        return default
    lowered = str(raw).strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ConfigError(f"{key} must be true or false, got '{raw}'")


@dataclass(frozen=True)
class BlinkDebitConfig:
    client_id: str
    client_secret: str
    debit_url: str = DEFAULT_DEBIT_URL
    access_token: Optional[str] = None
    timeout_seconds: int = 30
    max_connections: int = 10
    retry_enabled: bool = True
    active_profile: str = "test"

    def __repr__(self) -> str:
        return (
            f"BlinkDebitConfig(debit_url={self.debit_url!r}, client_id={self.client_id!r}, "
            f"client_secret='***', timeout_seconds={self.timeout_seconds}, "
            f"max_connections={self.max_connections}, retry_enabled={self.retry_enabled}, "
            f"active_profile={self.active_profile!r})"
        )

    @property
    def debug_mode(self) -> bool:
        return _DEBUG_PROFILES.fullmatch(self.active_profile) is not None

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy() if self.retry_enabled else RetryPolicy.disabled()

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "BlinkDebitConfig":
        debit_url = _normalize_url(values.get("BLINKPAY_DEBIT_URL") or DEFAULT_DEBIT_URL)
        client_id = _require_text(values, "BLINKPAY_CLIENT_ID")
        client_secret = _require_text(values, "BLINKPAY_CLIENT_SECRET")

        access_token = (values.get("BLINKPAY_ACCESS_TOKEN") or "").strip() or None

        timeout_seconds = _positive_int(values, "BLINKPAY_TIMEOUT_SECONDS", 30)
        max_connections = _positive_int(values, "BLINKPAY_MAX_CONNECTIONS", 10)
        retry_enabled = _boolean(values, "BLINKPAY_RETRY_ENABLED", True)
        active_profile = (values.get("BLINKPAY_ACTIVE_PROFILE") or "test").strip()

        return cls(
            debit_url=debit_url,
            client_id=client_id,
            client_secret=client_secret,
            access_token=access_token,
            timeout_seconds=timeout_seconds,
            max_connections=max_connections,
            retry_enabled=retry_enabled,
            active_profile=active_profile,
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "BlinkDebitConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "debit_url": debit_url,
                "client_id": client_id,
                "client_secret": client_secret,
                "access_token": access_token,
                "timeout_seconds": timeout_seconds,
                "max_connections": max_connections,
                "retry_enabled": retry_enabled,
                "active_profile": active_profile,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        logger.debug("Blink configuration sources: %s", environment.blinkpay_sources())
        return cls.from_mapping(environment.variables)


def load_blink_config(
    *,
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
) -> BlinkDebitConfig:
    """
    Convenience wrapper that mirrors :meth:`BlinkDebitConfig.from_env`.

    The configuration can come from environment variables, a ``.env`` file,
    direct keyword arguments, or any combination of the three.
    """
    return BlinkDebitConfig.from_env(
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
