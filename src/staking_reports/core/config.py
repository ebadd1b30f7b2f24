from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from web3 import Web3

from staking_reports.core.errors import ConfigurationError

ENV_PREFIX = "STAKING_REPORTS_"

_ENV_FIELDS = {
    "RPC_URL": "rpc_url",
    "STAKING_ADDRESS": "staking_address",
    "OUTPUT_ROOT": "output_root",
    "TOKEN_DECIMALS": "token_decimals",
    "CONCURRENT_FETCH": "concurrent_fetch",
    "REQUEST_TIMEOUT": "request_timeout",
    "ABI_PATH": "abi_path",
}


class ReportingConfig(BaseModel):
    rpc_url: str = Field(default="http://127.0.0.1:8545", min_length=1)
    staking_address: Optional[str] = None
    output_root: Path = Path(".")
    token_decimals: int = Field(default=18, ge=0, le=77)
    concurrent_fetch: bool = False
    request_timeout: float = Field(default=30.0, gt=0)
    abi_path: Optional[Path] = None

    @field_validator("staking_address")
    @classmethod
    def validate_staking_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        if not Web3.is_address(v.strip()):
            raise ValueError(f"Not an Ethereum address: {v}")
        return Web3.to_checksum_address(v.strip())

    @field_validator("rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: str) -> str:
        text = v.strip()
        if not text.startswith(("http://", "https://")):
            raise ValueError("rpc_url must be an http(s) endpoint")
        return text

    def require_address(self) -> str:
        if not self.staking_address:
            raise ConfigurationError(
                f"No staking contract address configured (set {ENV_PREFIX}STAKING_ADDRESS or --address)"
            )
        return self.staking_address


def _env_overrides(env: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    for suffix, field_name in _ENV_FIELDS.items():
        value = env.get(ENV_PREFIX + suffix)
        if value is not None and value != "":
            overrides[field_name] = value
    return overrides


def load_config(
    path: Optional[Path] = None,
    overrides: Optional[Mapping[str, Any]] = None,
    env: Optional[Mapping[str, str]] = None,
) -> ReportingConfig:
    """
    Resolve configuration from, in increasing precedence: defaults, an optional
    JSON file, STAKING_REPORTS_* environment variables, explicit overrides.
    """
    raw: Dict[str, Any] = {}

    if path is not None:
        try:
            loaded = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise ConfigurationError(f"Cannot read config file {path}: {exc}") from exc
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {path} must contain a JSON object")
        raw.update(loaded)

    raw.update(_env_overrides(os.environ if env is None else env))
    raw.update({k: v for k, v in dict(overrides or {}).items() if v is not None})

    try:
        return ReportingConfig(**raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
