from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class Request:
    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    timeout: float = 30.0
    follow_redirects: bool = True
    # 响应体读取上限, None 表示不限制
    max_body_bytes: int | None = None

    def with_headers(self, **headers: str) -> "Request":
        return replace(self, headers={**self.headers, **headers})


@dataclass(frozen=True)
class Response:
    status_code: int
    headers: dict[str, str]
    body: bytes
    latency_ms: int
    request: Request
    url: str = ""
    reason: str = ""
    set_cookies: tuple[str, ...] = ()
    # 响应体超过 max_body_bytes 时为 True, body 仅含上限以内的部分
    truncated: bool = False

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.get("content-type", "")

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


@dataclass
class StreamChunk:
    data: bytes
    status_code: int | None = None
    headers: dict[str, str] | None = None
