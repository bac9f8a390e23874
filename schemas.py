"""
Record Schemas for Find Near Room

Rooms and roommate posts share a single collection (posts.json) and are told
apart by the ``type`` field. Private chats live in a separate document
(roommate-chats.json) keyed by post id.
- Room -> type "room"
- Roommate -> type "roommate"
- Reply -> element of Roommate.replies
- ChatEntry -> element of a chat history

Every free-form field is stored as a string; missing values default to "".
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Literal


class StringFields(BaseModel):
    """Coerces scalar inputs to strings and missing values to ""."""

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_string(cls, value: Any, info):
        annotation = cls.model_fields[info.field_name].annotation
        if annotation is not str:
            return value
        if value is None:
            return ""
        if isinstance(value, (int, float, bool)):
            return str(value)
        return value


class Room(StringFields):
    id: str = Field(..., description="UUID4 assigned at creation")
    name: str = ""
    phone: str = ""
    email: str = ""
    gender: str = ""
    location: str = ""
    rent_by_person: str = ""
    deposit: str = ""
    room_type: str = ""
    available_from: str = ""
    facilities: str = ""
    map_link: str = ""
    imageLinks: List[str] = Field(default_factory=list, description="Hosted image URLs, in upload order")
    type: Literal["room"] = "room"
    timestamp: str = Field(..., description="Creation time, ISO-8601 UTC")


class Reply(StringFields):
    senderName: str = ""
    senderEmail: str = ""
    replyMessage: str = ""
    timestamp: str


class Roommate(StringFields):
    id: str
    name: str = ""
    gender: str = ""
    phone: str = ""
    email: str = ""
    message: str = ""
    replies: List[Reply] = Field(default_factory=list)
    type: Literal["roommate"] = "roommate"
    timestamp: str


class ChatEntry(StringFields):
    senderName: str = ""
    senderEmail: str = ""
    message: str = ""
    timestamp: str


# Response helpers
class RoomCreated(BaseModel):
    success: bool = True
    message: str = "Room posted successfully"
    links: List[str]
    id: str


class HiddenState(BaseModel):
    success: bool = True
    hidden: bool
