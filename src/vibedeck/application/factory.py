"""
Service Factory
Centralizes wiring of stores, scheduler, catalog and session manager.
"""

import logging
import random
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from vibedeck.application.catalog import Catalog
from vibedeck.application.config import AppConfig
from vibedeck.application.scheduler import ReviewScheduler
from vibedeck.application.session import SessionQueueManager
from vibedeck.domain.review.ports import KeyValueStore
from vibedeck.infrastructure.content import load_catalog
from vibedeck.infrastructure.progress import StoreProgressTracker
from vibedeck.infrastructure.storage import JsonFileStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    store: KeyValueStore
    scheduler: ReviewScheduler
    progress: StoreProgressTracker
    catalog: Catalog
    session: SessionQueueManager


def build_services(
    config: AppConfig,
    store: KeyValueStore | None = None,
    catalog: Catalog | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Services:
    """
    Wire up one session's worth of services.

    store and catalog default to the configured data and content
    directories; tests pass their own.
    """
    store = store or JsonFileStore(config.data_dir)
    catalog = catalog if catalog is not None else load_catalog(config.content_dir)
    rng = random.Random(config.seed) if config.seed is not None else random.Random()

    scheduler = ReviewScheduler(store, clock=clock)
    progress = StoreProgressTracker(store, clock=clock)
    session = SessionQueueManager(catalog, scheduler, store, progress=progress, rng=rng)
    logger.debug(f"Services built: data_dir={config.data_dir}, items={len(catalog)}")
    return Services(store, scheduler, progress, catalog, session)
