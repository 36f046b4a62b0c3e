"""
Side-effect intents (``asset_kernel.domain.intents``).

The core performs no I/O.  Effects that belong to external collaborators are
returned as intents for the caller to dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from asset_kernel.utils.serialization import to_jsonable


@dataclass(frozen=True)
class NotificationIntent:
    """A request for the notification collaborator to deliver an event.

    Exactly one of ``recipient_role`` or ``recipient_id`` is set.
    """

    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    recipient_role: str | None = None
    recipient_id: str | None = None

    def __post_init__(self) -> None:
        if (self.recipient_role is None) == (self.recipient_id is None):
            raise ValueError(
                "NotificationIntent requires exactly one of recipient_role or recipient_id"
            )

    @classmethod
    def to_role(cls, role: str, event_type: str, **payload: Any) -> NotificationIntent:
        return cls(event_type=event_type, payload=payload, recipient_role=role)

    @classmethod
    def to_recipient(cls, recipient_id: str, event_type: str, **payload: Any) -> NotificationIntent:
        return cls(event_type=event_type, payload=payload, recipient_id=recipient_id)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "event_type": self.event_type,
            "payload": to_jsonable(self.payload),
        }
        if self.recipient_role is not None:
            data["recipient_role"] = self.recipient_role
        else:
            data["recipient_id"] = self.recipient_id
        return data
