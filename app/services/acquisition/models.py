from dataclasses import dataclass
from enum import StrEnum


class FetchFailureKind(StrEnum):
    BOT_PROTECTION_DETECTED = "bot_protection_detected"
    NETWORK_ERROR = "network_error"
    UPSTREAM_STATUS = "upstream_status"
    SIZE_EXCEEDED = "size_exceeded"
    EMPTY = "empty"


# 可重试的失败类型, 其余类型一旦出现立即终止
TRANSIENT_FAILURE_KINDS = frozenset(
    {
        FetchFailureKind.BOT_PROTECTION_DETECTED,
        FetchFailureKind.NETWORK_ERROR,
        FetchFailureKind.UPSTREAM_STATUS,
    }
)


@dataclass(frozen=True)
class FetchSuccess:
    data: bytes
    content_type: str
    attempts: int = 1
    final_url: str | None = None


@dataclass(frozen=True)
class FetchFailure:
    kind: FetchFailureKind
    message: str
    detail: str = ""
    attempts: int = 1
    status_code: int | None = None
    final_url: str | None = None

    @property
    def is_transient(self) -> bool:
        return self.kind in TRANSIENT_FAILURE_KINDS


FetchResult = FetchSuccess | FetchFailure
