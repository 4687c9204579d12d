"""
The in-memory state of the active project.
"""
from typing import List, Optional

from devassist.models.chat import ExtractedFile, Message
from devassist.models.project import Project, Snapshot


class SessionContext:
    """
    Mutable snapshot of the project currently selected in a session.

    Created by the session controller on every project switch and dropped on
    the next one. Asynchronous work (stream chunks, delayed saves) must read
    messages and files from this object when it runs, never from a copy
    taken when it was scheduled.
    """

    def __init__(self, project: Project):
        self.project = project.model_copy(update={"savedMessages": [], "savedFiles": []})
        self.messages: List[Message] = [m.model_copy() for m in project.savedMessages]
        self.files: List[ExtractedFile] = list(project.savedFiles)
        # Set when the latest in-memory state could not be written to the store
        self.unsaved = False

    @property
    def project_id(self) -> str:
        return self.project.id

    def find_message(self, message_id: str) -> Optional[Message]:
        for message in self.messages:
            if message.id == message_id:
                return message
        return None

    def remove_message(self, message_id: str) -> bool:
        before = len(self.messages)
        self.messages = [m for m in self.messages if m.id != message_id]
        return len(self.messages) != before

    def snapshot(self) -> Snapshot:
        return Snapshot(
            messages=[m.model_copy() for m in self.messages],
            files=list(self.files),
        )

    def to_project(self) -> Project:
        """Full record for the store, detached from the live message objects."""
        return self.project.model_copy(update={
            "savedMessages": [m.model_copy() for m in self.messages],
            "savedFiles": list(self.files),
            "filesLoadedCount": len(self.files),
        })
