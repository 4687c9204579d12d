"""
Project storage implementation.
"""
from pathlib import Path
from typing import Optional, List
import asyncio

from pydantic import ValidationError

from devassist.utils.custom_exceptions import StoreUnavailableError
from devassist.utils.logging_utils import logger

from .base import BaseStorage
from ..models.project import Project

class ProjectStorage(BaseStorage[Project]):
    """
    Storage for projects, one JSON record per project id.

    save() is a full-record upsert: the stored file is replaced with the
    given project, fields are never merged with a previous record.
    """

    def __init__(self, projects_dir: Path):
        self.projects_dir = projects_dir
        super().__init__(self.projects_dir)

    def _project_file(self, project_id: str) -> Path:
        return self.projects_dir / f"{project_id}.json"

    def _load(self, data: dict, source: Path) -> Project:
        try:
            return Project(**data)
        except ValidationError as e:
            raise StoreUnavailableError(f"Corrupt project record {source.name}: {e}") from e

    def _get_sync(self, project_id: str) -> Optional[Project]:
        project_file = self._project_file(project_id)
        data = self._read_json(project_file)
        if not data:
            return None
        return self._load(data, project_file)

    def _list_sync(self) -> List[Project]:
        projects = []
        if not self.projects_dir.exists():
            return projects
        for project_file in self.projects_dir.glob("*.json"):
            data = self._read_json(project_file)
            if data:
                projects.append(self._load(data, project_file))
        # Most recently created first; id breaks ties so the order is stable
        return sorted(projects, key=lambda p: (p.createdAt, p.id), reverse=True)

    def _save_sync(self, project: Project) -> None:
        record = project.model_copy(update={"filesLoadedCount": len(project.savedFiles)})
        self._write_json(self._project_file(project.id), record.model_dump(mode="json"))

    async def get(self, project_id: str) -> Optional[Project]:
        return await asyncio.to_thread(self._get_sync, project_id)

    async def list(self) -> List[Project]:
        return await asyncio.to_thread(self._list_sync)

    async def save(self, project: Project) -> None:
        await asyncio.to_thread(self._save_sync, project)
        logger.debug(f"Saved project {project.id} ({len(project.savedMessages)} messages, {len(project.savedFiles)} files)")

    async def delete(self, project_id: str) -> None:
        removed = await asyncio.to_thread(self._remove, self._project_file(project_id))
        if removed:
            logger.info(f"Deleted project {project_id}")
