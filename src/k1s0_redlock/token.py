"""所有トークン生成"""

from __future__ import annotations

import base64
import secrets
from collections.abc import Callable

from .exceptions import TokenGenerationError

TokenGenerator = Callable[[], str]

TOKEN_BYTES = 16


def generate_token() -> str:
    """128 bit の乱数を base64 エンコードした所有トークンを返す。

    Raises:
        TokenGenerationError: OS の乱数源が利用できない場合
    """
    try:
        raw = secrets.token_bytes(TOKEN_BYTES)
    except (OSError, NotImplementedError) as e:
        raise TokenGenerationError(f"Failed to read random bytes: {e}", cause=e) from e
    return base64.standard_b64encode(raw).decode("ascii")
