"""
Formatting of extracted project files into prompt context.
"""
from typing import Iterable

from devassist.config.prompts import FILE_CONTEXT_HEADER
from devassist.models.chat import ExtractedFile


def format_context_for_prompt(files: Iterable[ExtractedFile]) -> str:
    context = FILE_CONTEXT_HEADER
    for f in files:
        context += f"--- FILE: {f.path} ---\n"
        context += f"{f.content}\n"
        context += "--- END FILE ---\n\n"
    return context
