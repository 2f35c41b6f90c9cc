"""設定ファイルからの Redlock 設定読み込み（pydantic BaseModel）"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import RedlockError, RedlockErrorCodes
from .models import (
    DEFAULT_DRIFT_FACTOR,
    DEFAULT_EXPIRY,
    DEFAULT_RETRY_DELAY,
    DEFAULT_TRIES,
    MutexConfig,
    constant_delay,
)


class RedisEndpoint(BaseModel):
    """1 つの独立した Redis インスタンスへの接続設定。"""

    url: str
    socket_timeout: float | None = Field(default=None, gt=0)


class RedlockSettings(BaseModel):
    """Redlock 設定。

    例 (YAML):
        redlock:
          endpoints:
            - url: redis://redis-1:6379/0
            - url: redis://redis-2:6379/0
            - url: redis://redis-3:6379/0
          expiry: 8.0
          key_prefix: "k1s0:lock:"
    """

    endpoints: list[RedisEndpoint] = Field(min_length=1)
    expiry: float = Field(default=DEFAULT_EXPIRY, gt=0)
    tries: int = Field(default=DEFAULT_TRIES, ge=1)
    retry_delay: float = Field(default=DEFAULT_RETRY_DELAY, ge=0)
    drift_factor: float = Field(default=DEFAULT_DRIFT_FACTOR, ge=0, lt=1)
    key_prefix: str = ""

    def to_mutex_config(self) -> MutexConfig:
        return MutexConfig(
            expiry=self.expiry,
            tries=self.tries,
            retry_delay=constant_delay(self.retry_delay),
            drift_factor=self.drift_factor,
        )


def _read_yaml(path: Path) -> dict[str, Any]:
    """YAML ファイルを読み込む。"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise RedlockError(
            code=RedlockErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data: dict[str, Any] = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise RedlockError(
            code=RedlockErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    return data


def load_settings(path: Path) -> RedlockSettings:
    """設定ファイルの redlock セクションを読み込んで RedlockSettings を返す。"""
    data = _read_yaml(path)
    section = data.get("redlock") if isinstance(data, dict) else None
    try:
        return RedlockSettings.model_validate(section or {})
    except ValidationError as e:
        raise RedlockError(
            code=RedlockErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
