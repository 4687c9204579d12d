"""
Data models for devassist projects and conversations.
"""
from .chat import Message, Sender, ExtractedFile, AnalysisType, new_message, now_ms
from .project import Project, ProjectCreate, ProjectUpdate, ProjectListItem, ProjectMerge, Snapshot, ProjectExport
