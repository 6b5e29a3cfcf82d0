from datetime import datetime

from pydantic import BaseModel


class MessageSendRequest(BaseModel):
    sender_id: str
    recipient_id: str
    text: str
    job_id: str | None = None


class MessageOut(BaseModel):
    id: str
    conversation_id: str
    sender_id: str
    recipient_id: str
    job_id: str | None = None
    text: str
    read: bool = False
    read_at: datetime | None = None
    created_at: datetime


class ConversationOut(BaseModel):
    conversation_id: str
    last_message: MessageOut
    unread_count: int = 0


class MarkReadRequest(BaseModel):
    conversation_id: str
    reader_id: str


class MarkReadResponse(BaseModel):
    updated: int
