from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    status: str
    problems: List[str] = Field(default_factory=list)
