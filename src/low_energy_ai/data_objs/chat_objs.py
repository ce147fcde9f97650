from typing import Literal

from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    message: str = Field(min_length=1, max_length=20000)


class ModelPick(BaseModel):
    model_id: str = Field(min_length=1)


class ChatReply(BaseModel):
    reply: str
    model_id: str
    elapsed_seconds: float = 0.0
    token_usage: dict | None = None
    saved: float = 0.0
