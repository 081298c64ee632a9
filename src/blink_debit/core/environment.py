"""
Utilities for building the environment used to configure the Blink Debit client.

Three layers are merged: a base mapping (the process environment by default),
an optional ``.env`` file that only fills gaps, and explicit overrides that
always win. The result remembers which layer supplied each key so
configuration problems can be traced without printing secret values.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Mapping, MutableMapping, Optional

ENV_PREFIX = "BLINKPAY_"

SOURCE_BASE = "environment"
SOURCE_OVERRIDE = "override"


def _clean_value(raw: str) -> str:
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    # unquoted values may carry a trailing " # comment"
    marker = value.find(" #")
    if marker != -1:
        value = value[:marker].rstrip()
    return value


def _parse_env_file(path: Path) -> Dict[str, str]:
    parsed: Dict[str, str] = {}
    try:
        data = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return parsed

    for raw_line in data.splitlines():
        line = raw_line.strip()
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, raw_value = line.split("=", 1)
        key = key.strip()
        if key:
            parsed[key] = _clean_value(raw_value)
    return parsed


def load_env_file(
    path: str = ".env",
    *,
    environ: Optional[MutableMapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Copy the keys of ``path`` that ``environ`` does not define yet into it.

    ``environ`` defaults to :data:`os.environ`. Returns a snapshot of the
    updated mapping.
    """
    target: MutableMapping[str, str] = os.environ if environ is None else environ
    for key, value in _parse_env_file(Path(path)).items():
        if key not in target:
            target[key] = value
    return dict(target)


@dataclass(frozen=True)
class BlinkEnvironment:
    """
    A resolved set of variables plus the layer each one came from.
    """

    variables: Mapping[str, str]
    sources: Mapping[str, str] = field(default_factory=dict)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.variables.get(key, default)

    def source_of(self, key: str) -> Optional[str]:
        return self.sources.get(key)

    def blinkpay_sources(self) -> Dict[str, str]:
        """Map every ``BLINKPAY_*`` key to its layer, never to its value."""
        return {
            key: self.sources.get(key, SOURCE_BASE)
            for key in sorted(self.variables)
            if key.startswith(ENV_PREFIX)
        }


def build_environment(
    *,
    env_file: Optional[str] = ".env",
    base: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, str]] = None,
) -> BlinkEnvironment:
    """
    Assemble a :class:`BlinkEnvironment` from multiple sources.

    ``base`` defaults to :data:`os.environ`; an empty mapping really means
    empty. Set ``env_file`` to ``None`` to skip file loading.
    """
    merged: Dict[str, str] = dict(os.environ if base is None else base)
    sources: Dict[str, str] = {key: SOURCE_BASE for key in merged}

    if env_file is not None:
        for key, value in _parse_env_file(Path(env_file)).items():
            if key not in merged:
                merged[key] = value
                sources[key] = env_file

    for key, value in (overrides or {}).items():
        merged[key] = value
        sources[key] = SOURCE_OVERRIDE

    return BlinkEnvironment(variables=merged, sources=sources)
