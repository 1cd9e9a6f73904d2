"""Data types exchanged with the bot backend and written to the JSON dumps."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

DELETED_STATUS = -1


@dataclass(frozen=True)
class Credentials:
    login: str
    password: str
    lang: str = "ru"


@dataclass(frozen=True)
class Session:
    """
    Bearer credential returned by authentication.

    Frozen on purpose: it is written once by ``DirectoryClient.authenticate``
    and then shared read-only by every worker thread.
    """

    token: str
    authenticated: bool = False

    @property
    def is_valid(self) -> bool:
        return bool(self.token)

    @property
    def authorization(self) -> str:
        return f"JWT {self.token}"

    def __repr__(self) -> str:
        masked = f"{self.token[:6]}..." if self.token else ""
        return f"Session(token={masked!r}, authenticated={self.authenticated})"


@dataclass(frozen=True)
class ClientSummary:
    """One row of the client directory listing."""

    id: int
    caption: str = ""
    description: str = ""
    user_name: str = ""
    is_group: bool = False
    status: int = 0
    bot_id: int = 0
    block: bool = False
    message_count: str = ""
    max: int = 0
    coin: int = 0
    count_ref: int = 0
    is_telegram: bool = False
    is_vk: bool = False
    is_fb: bool = False
    vk_id: str = ""

    @property
    def is_deleted(self) -> bool:
        return self.status == DELETED_STATUS

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientSummary":
        return cls(
            id=int(data["id"]),
            caption=data.get("caption") or "",
            description=data.get("description") or "",
            user_name=data.get("userName") or "",
            is_group=bool(data.get("isGroup", False)),
            status=int(data.get("status") or 0),
            bot_id=int(data.get("botId") or 0),
            block=bool(data.get("block", False)),
            message_count=str(data.get("messageCount") or ""),
            max=int(data.get("max") or 0),
            coin=int(data.get("coin") or 0),
            count_ref=int(data.get("countRef") or 0),
            is_telegram=bool(data.get("isTelegram", False)),
            is_vk=bool(data.get("isVK", False)),
            is_fb=bool(data.get("isFb", False)),
            vk_id=data.get("vkId") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "caption": self.caption,
            "description": self.description,
            "userName": self.user_name,
            "isGroup": self.is_group,
            "status": self.status,
            "botId": self.bot_id,
            "block": self.block,
            "messageCount": self.message_count,
            "max": self.max,
            "coin": self.coin,
            "countRef": self.count_ref,
            "isTelegram": self.is_telegram,
            "isVK": self.is_vk,
            "isFb": self.is_fb,
            "vkId": self.vk_id,
        }


@dataclass(frozen=True)
class ClientDetail:
    """Per-client record used as the messaging recipient."""

    id: int
    telegram_id: str
    user_name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClientDetail":
        return cls(
            id=int(data["id"]),
            telegram_id=str(data.get("telegramId") or ""),
            user_name=data.get("userName") or "",
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "telegramId": self.telegram_id,
            "userName": self.user_name,
        }


@dataclass(frozen=True)
class MessageItem:
    detail: ClientDetail
    text: str

    @property
    def recipient(self) -> str:
        return self.detail.telegram_id


@dataclass
class FilterResult:
    retained: List[ClientSummary] = field(default_factory=list)
    dropped: int = 0

    @property
    def total(self) -> int:
        return len(self.retained) + self.dropped
