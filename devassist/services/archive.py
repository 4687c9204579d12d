"""
Extraction of source files from an uploaded ZIP archive.
"""
import io
import zipfile
import zlib
from typing import List, Optional, Sequence

from devassist.config.app_config import (
    IGNORED_DIRS, ALLOWED_EXTENSIONS, MAX_FILE_SIZE_BYTES, MAX_TOTAL_FILES,
)
from devassist.models.chat import ExtractedFile
from devassist.utils.custom_exceptions import ArchiveError
from devassist.utils.logging_utils import logger


def _is_ignored(path: str, ignored_dirs: Sequence[str]) -> bool:
    return any(path.startswith(d + '/') or f'/{d}/' in path for d in ignored_dirs)


def truncation_marker(path: str, length: int) -> str:
    return f"// [TRUNCATED] File content too large ({length} chars). Path: {path}"


def extract_project_files(
    data: bytes,
    ignored_dirs: Optional[Sequence[str]] = None,
    allowed_extensions: Optional[Sequence[str]] = None,
    max_file_size: int = MAX_FILE_SIZE_BYTES,
    max_files: int = MAX_TOTAL_FILES,
) -> List[ExtractedFile]:
    """
    Return the text files of a ZIP archive that pass the directory and
    extension filters. Oversized files are replaced by a truncation marker.
    """
    ignored_dirs = IGNORED_DIRS if ignored_dirs is None else ignored_dirs
    allowed_extensions = ALLOWED_EXTENSIONS if allowed_extensions is None else allowed_extensions

    try:
        archive = zipfile.ZipFile(io.BytesIO(data))
    except (zipfile.BadZipFile, zipfile.LargeZipFile) as e:
        raise ArchiveError(f"Not a readable ZIP archive: {e}") from e

    extracted: List[ExtractedFile] = []
    with archive:
        for info in archive.infolist():
            if info.is_dir():
                continue
            path = info.filename
            if _is_ignored(path, ignored_dirs):
                continue
            if not any(path.endswith(ext) for ext in allowed_extensions):
                continue
            if len(extracted) >= max_files:
                logger.warning(f"Archive has more than {max_files} eligible files, ignoring the rest")
                break

            try:
                content = archive.read(info).decode('utf-8')
            except (UnicodeDecodeError, zipfile.BadZipFile, OSError,
                    RuntimeError, NotImplementedError, zlib.error) as e:
                # Undecodable, encrypted or unsupported entries are skipped
                logger.warning(f"Failed to read {path}: {e}")
                continue

            if len(content) > max_file_size:
                content = truncation_marker(path, len(content))
            extracted.append(ExtractedFile(path=path, content=content))

    logger.info(f"Extracted {len(extracted)} files from archive")
    return extracted
