# comments in English; reST docstrings strict
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RequestMeta:
    """
    Client metadata captured when a session is opened.

    :param ip: Client address (after proxy resolution).
    :type ip: str | None
    :param user_agent: Raw ``User-Agent`` header.
    :type user_agent: str | None
    """

    ip: str | None = None
    user_agent: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {"ip": self.ip, "user_agent": self.user_agent}

    @classmethod
    def from_dict(cls, raw: dict | None) -> "RequestMeta":
        raw = raw or {}
        return cls(ip=raw.get("ip"), user_agent=raw.get("user_agent"))

    def __bool__(self) -> bool:
        return bool(self.ip or self.user_agent)
