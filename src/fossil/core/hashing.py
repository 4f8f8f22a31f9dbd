"""
Deterministic hashing for exact-duplicate detection.

The repository stores a content hash in each entry's metadata so a byte
identical re-submission is recognised without scoring the whole corpus.

Manifesto:
    Hashing must be:
    - **Deterministic:** same inputs → same output, always
    - **Order-dependent:** (type, title, content) ≠ (content, title, type)
    - **Delimited:** ``("ab", "c")`` and ``("a", "bc")`` hash differently

Tags:
    hashing, deduplication, fossil-store
"""

import hashlib


def compute_hash(*values: object, length: int = 32) -> str:
    """
    Compute a SHA-256 hex digest over ``|``-joined string values.

    >>> compute_hash("insight", "Open issues") == compute_hash("insight", "Open issues")
    True
    >>> len(compute_hash("x", length=16))
    16
    """
    content = "|".join(str(v) for v in values)
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:length]


def compute_content_hash(entry_type: str, title: str, content: str) -> str:
    """Hash identifying an entry's (type, title, content) triple."""
    return compute_hash(entry_type, title, content, length=16)
