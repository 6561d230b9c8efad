class CookieJar:
    """
    Cookies gathered while walking through one browsing sequence.

    Keyed by cookie name; a later ``Set-Cookie`` for the same name replaces the
    earlier value. Attributes such as ``Path`` or ``Expires`` are dropped, only
    the ``name=value`` pair is replayed.
    """

    def __init__(self) -> None:
        self._cookies: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._cookies)

    def __contains__(self, name: str) -> bool:
        return name in self._cookies

    def get(self, name: str) -> str | None:
        return self._cookies.get(name)

    def add(self, set_cookie: str) -> None:
        pair = set_cookie.split(";", 1)[0].strip()
        if "=" not in pair:
            return
        name, value = pair.split("=", 1)
        name = name.strip()
        if name:
            self._cookies[name] = value.strip()

    def update(self, set_cookies: tuple[str, ...] | list[str]) -> None:
        for set_cookie in set_cookies:
            self.add(set_cookie)

    def header(self) -> str:
        return "; ".join(f"{name}={value}" for name, value in self._cookies.items())
