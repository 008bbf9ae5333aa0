"""
Sweep Task

Celery beat task running the expiry sweep when SWEEP_MODE=celery. The
worker shares the storage directory with the web process and
coordinates with it through the Redis index lock.
"""

import logging

from celery import shared_task
from flask import current_app

from application.dependency_container import DependencyContainer
from config.celery_config import SWEEP_TASK_NAME
from domain.errors import DomainError
from domain.file_sharing import GarbageCollector

logger = logging.getLogger(__name__)


def run_sweep(container: DependencyContainer) -> dict:
    """
    Run one sweep with the collector registered in the container.

    Returns:
        dict: Sweep statistics, or an error entry if the sweep failed
    """
    collector = container.resolve(GarbageCollector)

    try:
        report = collector.sweep()
    except DomainError as e:
        logger.error(f"Sweep task failed: {e}", exc_info=True)
        return {"expired_count": 0, "expired_ids": [], "orphans_removed": 0, "errors": [str(e)]}

    return report.to_dict()


@shared_task(name=SWEEP_TASK_NAME)
def sweep_expired_objects():
    """
    Periodic sweep removing expired objects, orphan blobs and abandoned
    partial uploads.

    Returns:
        dict: Sweep statistics
    """
    return run_sweep(current_app.container)
