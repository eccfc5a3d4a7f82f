"""
태스크 Pydantic 스키마
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TaskCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=500)


class TaskResponse(BaseModel):
    id: int
    name: str
    start_time: datetime
    end_time: Optional[datetime]

    model_config = {"from_attributes": True}
