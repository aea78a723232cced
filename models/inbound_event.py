from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from utils.phone import normalize_phone


# Payload Shapes Sent by the WhatsApp Cloud API Webhook
class WhatsAppText(BaseModel):
    body: str = ""


class WhatsAppLocation(BaseModel):
    latitude: float
    longitude: float
    name: Optional[str] = None
    address: Optional[str] = None


class WhatsAppMessage(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: Optional[str] = None
    from_: str = Field(alias="from")
    type: str
    timestamp: Optional[str] = None
    text: Optional[WhatsAppText] = None
    location: Optional[WhatsAppLocation] = None


class WhatsAppValue(BaseModel):
    messages: List[WhatsAppMessage] = []


class WhatsAppChange(BaseModel):
    value: WhatsAppValue


class WhatsAppEntry(BaseModel):
    changes: List[WhatsAppChange] = []


class WebhookPayload(BaseModel):
    object: str
    entry: List[WhatsAppEntry] = []

    def messages(self) -> List[WhatsAppMessage]:
        return [
            message
            for entry in self.entry
            for change in entry.changes
            for message in change.value.messages
        ]


# Normalized Event the Conversation Engine Consumes
class EventKind(str, Enum):
    TEXT = "text"
    LOCATION = "location"
    OTHER = "other"


class InboundEvent(BaseModel):
    sender: str
    kind: EventKind
    text: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    message_id: Optional[str] = None

    @classmethod
    def from_message(cls, message: WhatsAppMessage) -> "InboundEvent":
        sender = normalize_phone(message.from_)
        if message.type == "text" and message.text is not None:
            return cls(
                sender=sender,
                kind=EventKind.TEXT,
                text=message.text.body,
                message_id=message.id,
            )
        if message.type == "location" and message.location is not None:
            return cls(
                sender=sender,
                kind=EventKind.LOCATION,
                latitude=message.location.latitude,
                longitude=message.location.longitude,
                message_id=message.id,
            )
        return cls(sender=sender, kind=EventKind.OTHER, message_id=message.id)
