"""
Session controller: the single owner of the active project.

Every user action goes through here. Project switches flush the active
snapshot to the store before the target is loaded, and only one switch or
model request runs at a time.
"""
import asyncio
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional

from pydantic import ValidationError

from devassist.agents.gemini_client import GeminiClient
from devassist.config.prompts import ANALYSIS_PROMPTS, WELCOME_MESSAGE
from devassist.models.chat import AnalysisType, ExtractedFile, Message, Sender, new_message, now_ms
from devassist.models.project import EXPORT_FORMAT, Project, ProjectExport, Snapshot
from devassist.services.archive import extract_project_files
from devassist.services.merge import merge_snapshots
from devassist.services.save_scheduler import SaveScheduler
from devassist.services.session_context import SessionContext
from devassist.storage.credentials import CredentialStorage
from devassist.storage.projects import ProjectStorage
from devassist.streaming.accumulator import ConversationAccumulator
from devassist.utils.context_format import format_context_for_prompt
from devassist.utils.custom_exceptions import (
    ExchangeInProgressError, ImportFormatError, InsufficientProjectsError,
    MissingCredentialError, NoActiveProjectError, NoFilesLoadedError, ProjectNotFoundError,
    StoreUnavailableError, SwitchInProgressError,
)
from devassist.utils.logging_utils import logger
from devassist.utils.paths import get_credentials_file, get_projects_dir
from devassist.utils.throttle_handler import call_with_backoff, handle_with_backoff

DEFAULT_NAME_PREFIX = "Project "


class SessionController:

    def __init__(self, store: ProjectStorage, credentials: CredentialStorage,
                 client_factory: Callable[[str], GeminiClient] = GeminiClient):
        self.store = store
        self.credentials = credentials
        self.client_factory = client_factory
        self.projects: List[Project] = []
        self.context: Optional[SessionContext] = None
        self.is_loading = False
        self._switching = False
        self.saver = SaveScheduler(self._persist_active)

    # ── Lifecycle ──────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Load the project list; a broken store leaves an empty list."""
        try:
            self.projects = await self.store.list()
        except StoreUnavailableError as e:
            logger.error(f"Failed to load projects: {e}")
            self.projects = []
        logger.info(f"Loaded {len(self.projects)} projects")

    async def shutdown(self) -> None:
        if self.context is not None:
            await self.saver.flush()

    # ── Helpers ────────────────────────────────────────────────────

    def _require_context(self) -> SessionContext:
        if self.context is None:
            raise NoActiveProjectError()
        return self.context

    def _find_project(self, project_id: str) -> Optional[Project]:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    def _remember(self, project: Project) -> None:
        """Replace the cached list entry for project, or add it at the top."""
        for i, existing in enumerate(self.projects):
            if existing.id == project.id:
                self.projects[i] = project
                return
        self.projects.insert(0, project)

    def _notify(self, text: str) -> Message:
        context = self._require_context()
        message = new_message(text, Sender.SYSTEM)
        context.messages.append(message)
        return message

    async def _persist_active(self) -> bool:
        """
        Write the active snapshot to the store. A failure is logged and the
        user is told; the in-memory state stays intact for the next attempt.
        """
        context = self.context
        if context is None:
            return True
        project = context.to_project()
        try:
            await self.store.save(project)
            if self.context is not context:
                # Deleted or replaced while the write was running
                logger.debug(f"Project {project.id} left the session during its save")
                return True
        except StoreUnavailableError as e:
            logger.error(f"Failed to save project {project.id}: {e}")
            if not context.unsaved:
                context.messages.append(new_message(f"⚠️ Could not save the project: {e}", Sender.SYSTEM))
            context.unsaved = True
            return False
        context.unsaved = False
        self._remember(project)
        return True

    async def _save_new(self, project: Project) -> bool:
        try:
            await self.store.save(project)
            return True
        except StoreUnavailableError as e:
            logger.error(f"Failed to save project {project.id}: {e}")
            return False

    @asynccontextmanager
    async def _switch(self):
        """Serialize project switches and flush the active project first."""
        if self._switching:
            raise SwitchInProgressError()
        if self.is_loading:
            raise ExchangeInProgressError()
        self._switching = True
        try:
            if self.context is not None and not await self.saver.flush():
                raise StoreUnavailableError("Could not save the active project; it stays open")
            yield
        finally:
            self._switching = False

    def _activate(self, project: Project, saved: bool = True) -> SessionContext:
        self.context = SessionContext(project)
        if not saved:
            self.context.unsaved = True
            self._notify("⚠️ Could not save the project yet; it will be saved on the next change.")
        logger.info(f"Active project: {project.name} ({project.id})")
        return self.context

    async def _client(self) -> GeminiClient:
        api_key = await self.credentials.get()
        if not api_key:
            raise MissingCredentialError()
        return self.client_factory(api_key)

    def _begin_request(self) -> SessionContext:
        context = self._require_context()
        if self.is_loading or self._switching:
            raise ExchangeInProgressError()
        return context

    # ── Projects ───────────────────────────────────────────────────

    def list_projects(self) -> List[Project]:
        return list(self.projects)

    async def new_project(self, name: Optional[str] = None) -> Project:
        async with self._switch():
            now = now_ms()
            project = Project(
                id=str(uuid.uuid4()),
                name=name or f"{DEFAULT_NAME_PREFIX}{len(self.projects) + 1}",
                createdAt=now,
                savedMessages=[new_message(WELCOME_MESSAGE, Sender.SYSTEM, timestamp=now)],
            )
            saved = await self._save_new(project)
            self.projects.insert(0, project)
            self._activate(project, saved)
            return project

    async def select_project(self, project_id: str) -> SessionContext:
        if self.context is not None and self.context.project_id == project_id:
            return self.context
        target = self._find_project(project_id) or await self.store.get(project_id)
        if target is None:
            raise ProjectNotFoundError(project_id)
        async with self._switch():
            return self._activate(target)

    async def delete_project(self, project_id: str) -> None:
        if self.context is not None and self.context.project_id == project_id:
            if self.is_loading or self._switching:
                raise ExchangeInProgressError()
            self.context = None
            # A save that already started must land before the record is removed
            await self.saver.drain()
        await self.store.delete(project_id)
        self.projects = [p for p in self.projects if p.id != project_id]

    async def rename_project(self, project_id: str, name: str) -> Project:
        if self.context is not None and self.context.project_id == project_id:
            self.context.project.name = name
            await self._persist_active()
            return self.context.to_project()
        project = self._find_project(project_id) or await self.store.get(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        updated = project.model_copy(update={"name": name})
        await self.store.save(updated)
        self._remember(updated)
        return updated

    async def merge_projects(self, project_ids: List[str], name: Optional[str] = None) -> Project:
        """Combine projects into a new one and switch to it. Sources are kept."""
        unique_ids = list(dict.fromkeys(project_ids))
        if len(unique_ids) < 2:
            raise InsufficientProjectsError(len(unique_ids))

        records = {}
        for project_id in unique_ids:
            if self.context is not None and self.context.project_id == project_id:
                continue
            record = self._find_project(project_id) or await self.store.get(project_id)
            if record is None:
                raise ProjectNotFoundError(project_id)
            records[project_id] = record

        async with self._switch():
            sources = []
            for project_id in unique_ids:
                if project_id in records:
                    record = records[project_id]
                    sources.append(Snapshot(messages=record.savedMessages, files=record.savedFiles))
                else:
                    # The live snapshot is newer than any stored copy
                    sources.append(self.context.snapshot())
            merged = merge_snapshots(sources)

            project = Project(
                id=str(uuid.uuid4()),
                name=name or f"Merged Project {len(self.projects) + 1}",
                createdAt=now_ms(),
                savedMessages=merged.messages,
                savedFiles=merged.files,
                filesLoadedCount=len(merged.files),
            )
            saved = await self._save_new(project)
            self.projects.insert(0, project)
            self._activate(project, saved)
            logger.info(f"Merged {len(unique_ids)} projects into {project.id}")
            return project

    def export_project(self, project_id: str) -> str:
        if self.context is not None and self.context.project_id == project_id:
            project = self.context.to_project()
        else:
            project = self._find_project(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return ProjectExport(project=project).model_dump_json(indent=2)

    async def import_project(self, document: str) -> Project:
        """
        Store a project exported by export_project, keeping its id. Importing
        over the active project replaces the open conversation.
        """
        try:
            envelope = ProjectExport.model_validate_json(document)
        except ValidationError as e:
            raise ImportFormatError(f"Not a project export: {e}") from e
        if envelope.format != EXPORT_FORMAT:
            raise ImportFormatError(f"Unsupported document format: {envelope.format}")

        project = envelope.project
        is_active = self.context is not None and self.context.project_id == project.id
        if not is_active:
            await self.store.save(project)
            self._remember(project)
        else:
            if self.is_loading or self._switching:
                raise ExchangeInProgressError()
            self._switching = True
            try:
                # The open conversation's last save must not land after the import
                await self.saver.drain()
                await self.store.save(project)
                self._remember(project)
                self._activate(project)
            finally:
                self._switching = False
        logger.info(f"Imported project {project.name} ({project.id})")
        return project

    # ── Conversation ───────────────────────────────────────────────

    async def upload_archive(self, data: bytes, filename: str) -> List[ExtractedFile]:
        """Replace the active project's files with the contents of a ZIP archive."""
        context = self._begin_request()
        self.is_loading = True
        progress = self._notify(f"📂 Analyzing {filename}...")
        try:
            try:
                files = await asyncio.to_thread(extract_project_files, data)
            except Exception as e:
                context.remove_message(progress.id)
                logger.error(f"Failed to extract {filename}: {e}")
                self._notify(f"❌ Error: failed to read the file.\n{e}")
                raise

            context.files = files
            context.remove_message(progress.id)
            self._notify(
                f"✅ Analysis complete: loaded {len(files)} files.\n\n"
                f"From now on, answers are based on the code in {filename}."
            )
            if context.project.name.startswith(DEFAULT_NAME_PREFIX):
                context.project.name = filename.removesuffix('.zip')
            context.project.fileContextSummary = f"{filename}: {len(files)} files"
            await self._persist_active()
            return files
        finally:
            self.is_loading = False

    async def send_message(self, text: str) -> AsyncIterator[str]:
        """
        Start a chat exchange and return the stream of response chunks.

        Precondition failures (no project, request already running, missing
        API key) raise here, before anything is added to the conversation.
        Nothing changes until the returned iterator is first read: it then
        takes the loading flag, adds the user message and the placeholder,
        accumulates the response, records a failure as a SYSTEM message and
        re-raises it, and releases the loading flag when it ends. A stream
        that is closed without being read leaves the session untouched.
        """
        context = self._begin_request()
        client = await self._client()
        return self._stream_exchange(context, client, text)

    async def _stream_exchange(self, context: SessionContext, client: GeminiClient,
                               text: str) -> AsyncIterator[str]:
        # Checked again: another request or a switch may have started since
        if self._begin_request() is not context:
            raise SwitchInProgressError("The active project changed before the message was sent")
        self.is_loading = True
        accumulator = ConversationAccumulator(context)
        try:
            outbound = accumulator.begin(text)
            stream = handle_with_backoff(client.stream_message, accumulator.history, outbound)
            async for chunk in accumulator.consume(stream):
                yield chunk
            self.saver.schedule()
        except Exception as e:
            if accumulator.in_flight:
                accumulator.fail(str(e))
            raise
        finally:
            # The caller stopped reading: keep what arrived
            if accumulator.in_flight:
                accumulator.settle()
                self.saver.schedule()
            self.is_loading = False

    async def run_analysis(self, analysis_type: AnalysisType) -> Optional[Message]:
        context = self._begin_request()
        client = await self._client()
        if not context.files:
            raise NoFilesLoadedError()

        label, prompt = ANALYSIS_PROMPTS[analysis_type.value]
        self.is_loading = True
        thinking = new_message(f"🔍 Running {label}...", Sender.SYSTEM, is_thinking=True)
        context.messages.append(thinking)
        try:
            result = await call_with_backoff(
                client.generate_analysis, format_context_for_prompt(context.files), prompt
            )
        except Exception as e:
            context.remove_message(thinking.id)
            self._notify(f"An error occurred: {e}")
            logger.error(f"Analysis {analysis_type.value} failed: {e}")
            raise
        finally:
            self.is_loading = False

        context.remove_message(thinking.id)
        if not result:
            logger.warning(f"Analysis {analysis_type.value} returned no text")
            return None
        message = new_message(result, Sender.AI)
        context.messages.append(message)
        self.saver.schedule()
        return message

    # ── Settings ───────────────────────────────────────────────────

    async def set_api_key(self, api_key: str) -> None:
        await self.credentials.save(api_key.strip())

    async def has_api_key(self) -> bool:
        return bool(await self.credentials.get())


_session_controller: Optional[SessionController] = None


def get_session_controller() -> SessionController:
    """Process-wide controller backed by the configured data directory."""
    global _session_controller
    if _session_controller is None:
        _session_controller = SessionController(
            ProjectStorage(get_projects_dir()),
            CredentialStorage(get_credentials_file()),
        )
    return _session_controller
