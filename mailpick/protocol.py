"""WebSocket protocol definitions for the browser console <-> mailpick bridge."""

import json
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any


class Action(str, Enum):
    """Requests the console can send to its session."""
    OPEN_MAILBOX = "openMailbox"
    OPEN_SEARCH = "openSearch"
    LOAD_PAGE = "loadPage"
    TOGGLE = "toggle"
    TOGGLE_ALL = "toggleAll"
    CLEAR = "clear"
    STAGE_DELETE = "stageDelete"
    STAGE_BULK_DELETE = "stageBulkDelete"
    EDIT_TAGS = "editTags"
    ADD_TAG = "addTag"
    REMOVE_TAG = "removeTag"
    OPEN_RESTORE = "openRestore"
    CONFIRM = "confirm"
    CANCEL = "cancel"
    CLOSE = "close"
    STATE = "state"
    ALL_TAGS = "allTags"
    PING = "ping"


class Event(str, Enum):
    """Events the bridge pushes to the console."""
    CONNECTED = "connected"
    NOTIFICATION = "notification"


@dataclass
class Request:
    """Request from the console."""
    id: str
    action: str
    params: dict[str, Any]
    token: str | None = None

    def to_json(self) -> str:
        d = {"id": self.id, "action": self.action, "params": self.params}
        if self.token:
            d["token"] = self.token
        return json.dumps(d)

    @classmethod
    def from_dict(cls, data: dict) -> "Request":
        return cls(
            id=data["id"],
            action=data["action"],
            params=data.get("params", {}),
            token=data.get("token"),
        )


@dataclass
class Response:
    """Response to a console request."""
    id: str
    ok: bool
    result: dict[str, Any] | None = None
    error: str | None = None

    def to_json(self) -> str:
        d = {"id": self.id, "ok": self.ok}
        if self.ok:
            d["result"] = self.result or {}
        else:
            d["error"] = self.error or "Unknown error"
        return json.dumps(d)

    @classmethod
    def from_dict(cls, data: dict) -> "Response":
        return cls(
            id=data["id"],
            ok=data["ok"],
            result=data.get("result"),
            error=data.get("error"),
        )

    @classmethod
    def success(cls, request_id: str, result: dict[str, Any] | None = None) -> "Response":
        return cls(id=request_id, ok=True, result=result)

    @classmethod
    def failure(cls, request_id: str, error: str) -> "Response":
        return cls(id=request_id, ok=False, error=error)


@dataclass
class ServerEvent:
    """Server-initiated event pushed to the console."""
    event: str
    data: dict[str, Any]

    def to_json(self) -> str:
        return json.dumps(asdict(self))

    @classmethod
    def from_dict(cls, data: dict) -> "ServerEvent":
        return cls(
            event=data["event"],
            data=data.get("data", {}),
        )


def parse_message(raw: str) -> Request | Response | None:
    """Parse a JSON message into Request or Response."""
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        return None

    if not isinstance(data, dict):
        return None
    if "action" in data and "id" in data:
        return Request.from_dict(data)
    elif "ok" in data and "id" in data:
        return Response.from_dict(data)
    return None
