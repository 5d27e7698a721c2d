from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class FiltersModel(BaseModel):
    week: Optional[str] = None
    ticket_type: Optional[str] = None
    assignee: Optional[str] = None
    task_force: Optional[str] = None
    epic: Optional[str] = None


class KeyEventModel(BaseModel):
    key: str
    ctrl: bool = False
    meta: bool = False


class MetaOptionsResponse(BaseModel):
    options: Dict[str, List[str]] = Field(default_factory=dict)
    labels: Dict[str, str] = Field(default_factory=dict)


class UploadStatusResponse(BaseModel):
    ok: bool
    message: str
    kind: str
    records: int
