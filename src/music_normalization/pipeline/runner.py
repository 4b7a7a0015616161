# music_normalization/pipeline/runner.py

"""Run the four migration stages in order against one store."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date

from music_normalization.domain.raw import RawSnapshot
from music_normalization.pipeline.guard import drop_integrity_triggers, install_integrity_guard
from music_normalization.pipeline.normalizer import (
    NormalizationReport,
    normalize_fields,
    publish,
)
from music_normalization.pipeline.referential import remove_orphans
from music_normalization.pipeline.schema import create_schema
from music_normalization.pipeline.staging import drop_staging_tables, stage_snapshot
from music_normalization.store.connection import MusicStore

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MigrationReport:
    staged: dict[str, int] = field(default_factory=dict)
    orphans_removed: dict[str, int] = field(default_factory=dict)
    normalization: NormalizationReport = field(default_factory=NormalizationReport)
    published: dict[str, int] = field(default_factory=dict)


def run_migration(
    store: MusicStore,
    snapshot: RawSnapshot,
    *,
    today: date | None = None,
    install_guard: bool = True,
) -> MigrationReport:
    """Migrate a raw snapshot into the normalized schema.

    Each stage commits on its own. If a stage fails, its transaction is
    rolled back and the error propagates; earlier stages stay committed.

    Args:
        store: Target store. Must not be inside a transaction.
        snapshot: Raw tables to migrate.
        today: Processing date for the age check. Defaults to date.today().
        install_guard: Register the integrity hooks and triggers once data is
            published. Triggers left by an earlier run are dropped before
            publishing either way.
    """
    processing_date = today or date.today()
    report = MigrationReport()

    logger.info("Stage 1/4: defining schema in %s.", store.path)
    create_schema(store)

    logger.info("Stage 2/4: staging raw rows and removing orphans.")
    with store.transaction():
        report.staged = stage_snapshot(store, snapshot)
        report.orphans_removed = remove_orphans(store)

    logger.info("Stage 3/4: normalizing fields (processing date %s).", processing_date)
    with store.transaction():
        drop_integrity_triggers(store)
        report.normalization = normalize_fields(store, processing_date)
        report.published = publish(store)
        drop_staging_tables(store)

    if install_guard:
        logger.info("Stage 4/4: installing integrity guard.")
        if today is None:
            install_integrity_guard(store)
        else:
            install_integrity_guard(store, today=lambda: today)

    logger.info(
        "Migration done: %s",
        ", ".join(f"{name}={count}" for name, count in report.published.items()),
    )
    return report
