"""
Construction parameters for a reserve pool + lending pool pair.

Resolution order (later wins): dataclass defaults, an optional YAML mapping,
then environment variables:

- ``SPOTLEND_TOKEN_ASSET``
- ``SPOTLEND_COLLATERAL_RATIO_BPS``

Invalid values raise ``ValidationError``; nothing is clamped.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .core.errors import ValidationError
from .core.fixed_point import BPS_DENOM
from .state.balances import NATIVE_ASSET


DEFAULT_TOKEN_ASSET = "0x" + "11" * 32
DEFAULT_COLLATERAL_RATIO_BPS = 8000

ENV_TOKEN_ASSET = "SPOTLEND_TOKEN_ASSET"
ENV_COLLATERAL_RATIO_BPS = "SPOTLEND_COLLATERAL_RATIO_BPS"


@dataclass(frozen=True)
class SystemConfig:
    """Immutable construction parameters."""

    token_asset: str = DEFAULT_TOKEN_ASSET
    collateral_ratio_bps: int = DEFAULT_COLLATERAL_RATIO_BPS

    def __post_init__(self) -> None:
        if not isinstance(self.token_asset, str) or not self.token_asset.strip():
            raise ValidationError("token_asset must be a non-empty string")
        if self.token_asset == NATIVE_ASSET:
            raise ValidationError("token_asset must differ from the native asset")
        bps = self.collateral_ratio_bps
        if not isinstance(bps, int) or isinstance(bps, bool):
            raise ValidationError("collateral_ratio_bps must be an int")
        if not (0 <= bps <= BPS_DENOM):
            raise ValidationError(f"collateral_ratio_bps must be in [0, {BPS_DENOM}]: {bps}")


def _env_int(name: str, *, lo: int, hi: int) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        v = int(raw.strip())
    except ValueError as exc:
        raise ValidationError(f"{name} must be an integer: {raw!r}") from exc
    if not (lo <= v <= hi):
        raise ValidationError(f"{name} must be in [{lo}, {hi}]: {v}")
    return v


def _env_str(name: str) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return None
    v = raw.strip()
    return v if v else None


def config_from_mapping(data: Mapping[str, Any], base: Optional[SystemConfig] = None) -> SystemConfig:
    """Overlay known keys of ``data`` on ``base``; unknown keys are rejected."""
    if not isinstance(data, Mapping):
        raise ValidationError("config must be a mapping")
    known = {f.name for f in fields(SystemConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValidationError(f"unknown config keys: {', '.join(map(str, unknown))}")
    return replace(base or SystemConfig(), **dict(data))


def load_config(path: Optional[Union[str, Path]] = None) -> SystemConfig:
    """
    Build a ``SystemConfig`` from an optional YAML file and the environment.

    An empty YAML document is treated as an empty mapping.
    """
    config = SystemConfig()
    if path is not None:
        text = Path(path).read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValidationError(f"invalid YAML in {path}: {exc}") from exc
        config = config_from_mapping(data or {}, config)

    overrides: dict = {}
    token = _env_str(ENV_TOKEN_ASSET)
    if token is not None:
        overrides["token_asset"] = token
    bps = _env_int(ENV_COLLATERAL_RATIO_BPS, lo=0, hi=BPS_DENOM)
    if bps is not None:
        overrides["collateral_ratio_bps"] = bps
    if overrides:
        config = replace(config, **overrides)
    return config
