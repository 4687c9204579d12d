"""
Combining several project snapshots into one.
"""
from typing import Dict, List, Sequence

from devassist.models.chat import ExtractedFile, Message, Sender, new_message, now_ms
from devassist.models.project import Snapshot
from devassist.utils.custom_exceptions import InsufficientProjectsError


def merge_marker_text(count: int) -> str:
    return f"--- Projects merged: combined the history of {count} projects ---"


def merge_snapshots(snapshots: Sequence[Snapshot]) -> Snapshot:
    """
    Merge snapshots in input order.

    Files are keyed by path and a later snapshot wins on collisions.
    Messages from all snapshots are stable-sorted by timestamp and followed
    by a SYSTEM marker that is stamped no earlier than any input message.
    Inputs are not modified and nothing is persisted.
    """
    if len(snapshots) < 2:
        raise InsufficientProjectsError(len(snapshots))

    file_map: Dict[str, ExtractedFile] = {}
    for snapshot in snapshots:
        for f in snapshot.files:
            file_map[f.path] = f

    merged_messages: List[Message] = []
    for snapshot in snapshots:
        merged_messages.extend(m.model_copy() for m in snapshot.messages)
    merged_messages.sort(key=lambda m: m.timestamp)

    latest = merged_messages[-1].timestamp if merged_messages else 0
    marker = new_message(
        merge_marker_text(len(snapshots)),
        Sender.SYSTEM,
        timestamp=max(now_ms(), latest),
    )
    merged_messages.append(marker)

    return Snapshot(messages=merged_messages, files=list(file_map.values()))
