"""
Pydantic schemas for the chat assistant.
"""

from pydantic import BaseModel, Field


class ChatQuestion(BaseModel):
    """A free-text question for the assistant."""

    question: str = Field(
        ...,
        max_length=2000,
        description="User question in Arabic or English",
        examples=["كم متوسط سعر إيجار شقة في القاهرة؟"]
    )


class ChatAnswer(BaseModel):
    """Assistant reply."""

    answer: str
