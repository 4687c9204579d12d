"""
Project data models.
"""
from pydantic import BaseModel, Field
from typing import List, Optional

from .chat import Message, ExtractedFile

EXPORT_FORMAT = "devassist-project"


class Project(BaseModel):
    id: str
    name: str
    createdAt: int
    fileContextSummary: Optional[str] = None
    # Cache of len(savedFiles), recomputed on every save
    filesLoadedCount: int = 0
    savedMessages: List[Message] = []
    savedFiles: List[ExtractedFile] = []


class Snapshot(BaseModel):
    """The full (messages, files) state of one project."""
    messages: List[Message] = []
    files: List[ExtractedFile] = []


class ProjectCreate(BaseModel):
    name: Optional[str] = None


class ProjectUpdate(BaseModel):
    name: str = Field(min_length=1)


class ProjectMerge(BaseModel):
    projectIds: List[str]
    name: Optional[str] = None


class ProjectListItem(BaseModel):
    """Project without its conversation and files, for list views."""
    id: str
    name: str
    createdAt: int
    filesLoadedCount: int
    messageCount: int
    isActive: bool = False


class ProjectExport(BaseModel):
    """Envelope written by project export and accepted by import."""
    format: str = EXPORT_FORMAT
    version: int = 1
    project: Project
