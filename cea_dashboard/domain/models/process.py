"""
Process and Transcription Domain Models
Derived process records and the transcriptions they come from
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from enum import Enum


class ProcessStatus(str, Enum):
    """Status of a mapped process"""
    DRAFT = "draft"
    ACTIVE = "active"
    ARCHIVED = "archived"


class DiagramNode(BaseModel):
    id: str
    label: str
    type: str


class DiagramEdge(BaseModel):
    # "from" is a keyword, so the field is aliased
    source: str = Field(..., alias="from")
    to: str

    class Config:
        populate_by_name = True


class DiagramData(BaseModel):
    """Nodes and edges of a process diagram"""
    nodes: List[DiagramNode] = Field(default_factory=list)
    edges: List[DiagramEdge] = Field(default_factory=list)


class ImprovementsData(BaseModel):
    """Improvement suggestions attached to a process"""
    suggestions: List[str] = Field(default_factory=list)
    efficiency_gain: Optional[int] = None
    time_saved: Optional[str] = None


class Process(BaseModel):
    """Row of the processes table"""
    id: str
    organization_id: str
    name: str
    description: Optional[str] = None
    status: ProcessStatus = ProcessStatus.DRAFT
    efficiency_score: Optional[int] = None
    diagram_data: Optional[Dict[str, Any]] = None
    improvements_data: Optional[Dict[str, Any]] = None
    transcription_id: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        use_enum_values = True
        extra = "ignore"


class Transcription(BaseModel):
    """Row of the transcriptions table"""
    id: str
    organization_id: str
    call_id: Optional[str] = None
    content: str = ""
    metadata: Dict[str, Any] = Field(default_factory=dict)
    processed: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        extra = "ignore"
