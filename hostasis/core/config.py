"""hostasis.core.config

Three config surfaces only:
1) An optional YAML file (``--config``)
2) Environment variables (``HOSTASIS_*``), also read from ``./.env``
3) CLI flags (applied by the CLI on top of the loaded config)

The config is built once at process entry and passed down explicitly.
Library code never reads the environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from hostasis import DEFAULT_GATEWAY_URL, DEFAULT_GNOSIS_RPC_URL
from hostasis.core.exceptions import ConfigError

# PostageStamp contract on Gnosis Chain
POSTAGE_STAMP_ADDRESS = "0x45a1502382541Cd610CC9068e88727426b696293"
GNOSIS_CHAIN_ID = 100

DEFAULT_DEPTH = 20
DEFAULT_FEED_INDEX = 0


class GatewayConfig(BaseModel):
    url: str = DEFAULT_GATEWAY_URL
    timeout_s: float = 5.0

    @field_validator("timeout_s")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_s must be > 0")
        return v

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ChainConfig(BaseModel):
    rpc_url: str = DEFAULT_GNOSIS_RPC_URL
    chain_id: int = GNOSIS_CHAIN_ID
    postage_stamp_address: str = POSTAGE_STAMP_ADDRESS
    timeout_s: float = 5.0

    @field_validator("timeout_s")
    @classmethod
    def timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_s must be > 0")
        return v


class FeedConfig(BaseModel):
    default_depth: int = DEFAULT_DEPTH
    default_index: int = DEFAULT_FEED_INDEX

    @field_validator("default_depth")
    @classmethod
    def depth_fits_uint8(cls, v: int) -> int:
        if not 0 <= v <= 255:
            raise ValueError("default_depth must be within 0..255")
        return v

    @field_validator("default_index")
    @classmethod
    def index_not_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("default_index must be >= 0")
        return v


class LoggingConfig(BaseModel):
    level: str = "WARNING"
    json_output: bool = False


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    private_key: str = ""
    batch_id: str = ""
    project: str = ""
    topic: str = ""
    feed_writer: str = ""  # import path, "package.module:attr"

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    chain: ChainConfig = Field(default_factory=ChainConfig)
    feed: FeedConfig = Field(default_factory=FeedConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": "HOSTASIS_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "extra": "ignore",
    }

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw: Any = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")
        return cls(**raw)

    @classmethod
    def load(cls, path: Path | None = None) -> Config:
        return cls.from_yaml(path) if path is not None else cls()

    def with_overrides(self, overrides: dict[str, Any]) -> Config:
        """Copy with non-None overrides applied. Dotted keys reach nested models."""

        top: dict[str, Any] = {}
        nested: dict[str, dict[str, Any]] = {}
        for key, value in overrides.items():
            if value is None:
                continue
            section, _, field = key.partition(".")
            if field:
                nested.setdefault(section, {})[field] = value
            else:
                top[key] = value

        for section, fields in nested.items():
            current: BaseModel = getattr(self, section)
            top[section] = current.model_validate({**current.model_dump(), **fields})

        return self.model_copy(update=top)
