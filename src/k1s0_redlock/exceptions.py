"""redlock ライブラリの例外型定義"""

from __future__ import annotations


class RedlockError(Exception):
    """redlock ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class RedlockErrorCodes:
    """RedlockError のエラーコード定数。"""

    INVALID_CONFIG: str = "INVALID_CONFIG"
    TOKEN_GENERATION: str = "TOKEN_GENERATION_ERROR"
    ACQUISITION_FAILED: str = "ACQUISITION_FAILED"
    NOT_HELD: str = "NOT_HELD"
    STORE_OPERATION: str = "STORE_OPERATION_ERROR"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"


class TokenGenerationError(RedlockError):
    """所有トークンの生成に失敗した場合のエラー。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(RedlockErrorCodes.TOKEN_GENERATION, message, cause)


class LockAcquisitionError(RedlockError):
    """全試行でクォーラムを得られなかった場合のエラー。"""

    def __init__(self, name: str, tries: int) -> None:
        self.name = name
        self.tries = tries
        super().__init__(
            RedlockErrorCodes.ACQUISITION_FAILED,
            f"Failed to acquire lock {name!r} after {tries} tries",
        )


class LockNotHeldError(RedlockError):
    """ロックを保持していない Mutex に対して解放・延長を行った場合のエラー。"""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(RedlockErrorCodes.NOT_HELD, f"Lock not held: {name!r}")


class StoreOperationError(RedlockError):
    """単一ストアに対する操作の失敗。ファンアウト内では失敗として数えられる。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(RedlockErrorCodes.STORE_OPERATION, message, cause)
