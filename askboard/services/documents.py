"""
AskBoard Backend: Embedded Document Helpers
============================================

What:  Build and locate answers and comments embedded in a question.
How:   Plain functions over lists of dicts. No I/O; the service decides
       when to read and write the row.

Every embedded entity gets a random id when it is created. Lookups go by
that id (optionally together with the owner), never by list position, so
the address of a comment nested under an answer is stable no matter how
the answer list changes.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

Entry = Dict[str, Any]


def _entry(content: str, user_id: str) -> Entry:
    return {
        "id": str(uuid.uuid4()),
        "user": user_id,
        "content": content,
        "created_at": datetime.now(timezone.utc).isoformat(),
    }


def new_answer(content: str, user_id: str) -> Entry:
    """An answer owned by `user_id`, starting with no comments."""
    answer = _entry(content, user_id)
    answer["comments"] = []
    return answer


def new_comment(content: str, user_id: str) -> Entry:
    """A comment owned by `user_id`."""
    return _entry(content, user_id)


def locate(
    entries: List[Entry],
    entry_id: str,
    owner: Optional[str] = None,
) -> Optional[int]:
    """
    Index of the first entry with id `entry_id`, or None.

    When `owner` is given the entry must also belong to that user; an entry
    with the right id and the wrong owner counts as not found.
    """
    for index, entry in enumerate(entries):
        if entry.get("id") != entry_id:
            continue
        if owner is not None and entry.get("user") != owner:
            continue
        return index
    return None
