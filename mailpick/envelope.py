"""Envelope and page representations returned by the archive backend."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class Envelope:
    """Reference to one archived message (metadata only, not content).

    ``id`` is only unique within ``account_id``; two accounts may both hold an
    envelope with id 10. The display fields are carried for the console and
    are never inspected by the selection logic.
    """

    id: int
    account_id: int
    mailbox_id: int
    tags: list[str] = field(default_factory=list)
    subject: str = ""
    from_addr: str = ""
    size: int = 0
    date: int | None = None  # Milliseconds since epoch
    account_email: str = ""
    mailbox_name: str = ""
    attachments: list[dict[str, Any]] = field(default_factory=list)

    @property
    def key(self) -> tuple[int, int]:
        """Composite (account_id, id) key."""
        return (self.account_id, self.id)

    @classmethod
    def from_dict(cls, data: dict) -> "Envelope":
        # Tags are an ordered set; drop repeats the backend might send
        tags: list[str] = []
        for tag in data.get("tags") or []:
            if tag not in tags:
                tags.append(tag)

        return cls(
            id=int(data["id"]),
            account_id=int(data["account_id"]),
            mailbox_id=int(data.get("mailbox_id", 0)),
            tags=tags,
            subject=data.get("subject") or "",
            from_addr=data.get("from") or "",
            size=data.get("size") or 0,
            date=data.get("date"),
            account_email=data.get("account_email") or "",
            mailbox_name=data.get("mailbox_name") or "",
            attachments=data.get("attachments") or [],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "account_id": self.account_id,
            "mailbox_id": self.mailbox_id,
            "tags": list(self.tags),
            "subject": self.subject,
            "from": self.from_addr,
            "size": self.size,
            "date": self.date,
            "account_email": self.account_email,
            "mailbox_name": self.mailbox_name,
            "attachments": list(self.attachments),
        }


@dataclass
class Page:
    """One page of envelopes plus pagination totals."""

    items: list[Envelope]
    total_items: int = 0
    page: int | None = None
    page_size: int | None = None
    total_pages: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "Page":
        return cls(
            items=[Envelope.from_dict(item) for item in data.get("items") or []],
            total_items=data.get("total_items", 0),
            page=data.get("page"),
            page_size=data.get("page_size"),
            total_pages=data.get("total_pages"),
        )
