"""Environment-driven settings for the fossil store.

``FossilSettings`` reads ``FOSSIL_*`` environment variables (and a ``.env``
file) so producer scripts and the CLI agree on where the fossil tree lives
and how aggressive deduplication is, without any process-wide singleton:
each caller builds its own settings and turns them into a ``StoreConfig``.

Examples:
    >>> from fossil.core.settings import FossilSettings
    >>> settings = FossilSettings(root_path="/tmp/fossils", dedup_threshold=90)
    >>> settings.dedup_threshold
    90

Tags:
    settings, configuration, pydantic, environment
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FossilSettings(BaseSettings):
    """Settings shared by the store, the CLI and producer scripts.

    Fields
    ──────
    root_path        : Root of the fossil tree (entries/, canonical/, archive/)
    dedup_threshold  : Similarity score (0-100) at which a candidate is a duplicate
    title_weight     : Weight of title overlap in the combined similarity score
    log_level        : structlog log level
    json_logs        : JSON log lines (True), console (False), auto (None)
    """

    model_config = SettingsConfigDict(
        env_prefix="FOSSIL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Storage ──────────────────────────────────────────────────
    root_path: Path = Field(
        default_factory=lambda: Path.cwd() / "fossils",
        description="Root directory of the fossil tree",
    )

    # ── Deduplication ────────────────────────────────────────────
    dedup_threshold: float = Field(default=80.0, ge=0, le=100)
    title_weight: float = Field(default=0.3, ge=0, le=1)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None
