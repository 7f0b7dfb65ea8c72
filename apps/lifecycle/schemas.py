from typing import Literal, Optional
from pydantic import BaseModel, Field as PydanticField


class ReviewItemPayload(BaseModel):
    status: Literal["approved", "rejected", "suspended"]
    adminNotes: Optional[str] = PydanticField(default=None, max_length=5000)
    suspensionReason: Optional[str] = PydanticField(default=None, max_length=5000)


class ReviewRequestPayload(BaseModel):
    status: Literal["approved", "partial", "rejected"]
    adminNotes: Optional[str] = PydanticField(default=None, max_length=5000)


class CompleteRequestPayload(BaseModel):
    completionNotes: Optional[str] = PydanticField(default=None, max_length=5000)


class SetPriorityPayload(BaseModel):
    priority: Literal["urgent", "high", "normal", "low"]
    notes: Optional[str] = PydanticField(default=None, max_length=5000)
