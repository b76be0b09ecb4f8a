"""Link generation and tag normalization rules."""

import re
import secrets
from pathlib import PurePosixPath
from typing import Iterable, List, Optional

from bson import ObjectId

# 32 random bytes, hex encoded
LINK_ENTROPY_BYTES = 32
LINK_LENGTH = LINK_ENTROPY_BYTES * 2


def generate_shareable_link() -> str:
    """Return a fixed-length, URL-safe token for anonymous access."""
    return secrets.token_hex(LINK_ENTROPY_BYTES)


def generate_file_id() -> str:
    return str(ObjectId())


def is_valid_file_id(file_id: object) -> bool:
    """Structural check only: 24 hex characters (ObjectId format)."""
    return isinstance(file_id, str) and len(file_id) == 24 and ObjectId.is_valid(file_id)


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Trim, drop empty entries and deduplicate while keeping first-seen order.

    Comparison is case-sensitive: "Cat" and "cat" are distinct tags.
    """
    normalized: List[str] = []
    seen = set()
    for tag in tags:
        cleaned = tag.strip()
        if cleaned and cleaned not in seen:
            seen.add(cleaned)
            normalized.append(cleaned)
    return normalized


def parse_tag_string(raw_tags: Optional[str]) -> List[str]:
    """Split a comma separated form value into normalized tags."""
    if not raw_tags:
        return []
    return normalize_tags(raw_tags.split(","))


def merge_tags(existing: Iterable[str], new: Iterable[str]) -> List[str]:
    """Set union of existing and new tags, existing entries first."""
    return normalize_tags([*existing, *new])


_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")
_MAX_NAME_LENGTH = 128


def sanitize_filename(name: Optional[str]) -> str:
    """Base name of ``name`` reduced to a storage-safe character set."""
    base = PurePosixPath((name or "").replace("\\", "/")).name
    return _UNSAFE_NAME_CHARS.sub("_", base).strip("._")[:_MAX_NAME_LENGTH] or "file"
