# File: site_auditor/retry.py
"""site_auditor.retry: Политика ограниченных повторов для аудита страниц.

По умолчанию две попытки с фиксированной паузой 2 секунды между ними.
Ошибки класса NonRetryableAuditError повторно не выполняются.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Tuple, Type, TypeVar

from site_auditor.errors import NonRetryableAuditError
from site_auditor.logger import logger
from site_auditor.utils import pause

__all__ = ["RetryPolicy"]

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Сколько раз пробовать и сколько ждать между попытками."""

    max_attempts: int = 2
    backoff: float = 2.0
    non_retryable: Tuple[Type[BaseException], ...] = (NonRetryableAuditError,)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.backoff < 0:
            raise ValueError("backoff must be >= 0")

    def should_retry(self, exc: BaseException, attempt: int) -> bool:
        """attempt: номер только что неудачной попытки, начиная с 1."""
        if attempt >= self.max_attempts:
            return False
        return not isinstance(exc, self.non_retryable)

    async def call(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        label: str = "operation",
    ) -> T:
        """Выполняет operation, повторяя при ошибке. Последняя ошибка пробрасывается."""
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as exc:
                if not self.should_retry(exc, attempt):
                    raise
                logger.warning(
                    "Attempt %d/%d for %s failed: %s; retrying in %.1f s",
                    attempt, self.max_attempts, label, exc, self.backoff,
                )
                await pause(self.backoff)
