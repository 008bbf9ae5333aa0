"""
Celery Configuration

Only used when SWEEP_MODE=celery: a beat process enqueues the expiry sweep
and a worker runs it against the shared storage directory, coordinating
with the web process through the Redis index lock.
"""

import os

from celery import Celery
from kombu import Queue

SWEEP_TASK_NAME = "tasks.sweep_expired_objects"
SWEEP_QUEUE = "sweep"


class CeleryConfig:
    """Celery settings, overridable through CELERY_* environment variables."""

    broker_url = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
    result_backend = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/0")

    task_serializer = "json"
    result_serializer = "json"
    accept_content = ["json"]
    enable_utc = True
    timezone = "UTC"

    # One sweep at a time per worker
    worker_prefetch_multiplier = 1
    task_acks_late = True

    task_default_queue = SWEEP_QUEUE
    task_queues = (Queue(SWEEP_QUEUE, routing_key=SWEEP_QUEUE),)
    task_routes = {SWEEP_TASK_NAME: {"queue": SWEEP_QUEUE}}

    # A stuck sweep must not hold the index lock forever
    task_soft_time_limit = int(os.getenv("CELERY_TASK_SOFT_TIME_LIMIT", 120))
    task_time_limit = int(os.getenv("CELERY_TASK_TIME_LIMIT", 180))

    # Sweep reports are only interesting for a short while
    result_expires = 15 * 60


def make_celery(app, sweep_interval_seconds: float = 60.0) -> Celery:
    """
    Build the Celery app that schedules and runs the expiry sweep.

    Tasks execute inside the Flask application context so they can reach
    the dependency container through current_app.

    Args:
        app: Flask application instance
        sweep_interval_seconds: Beat period of the sweep

    Returns:
        Configured Celery instance
    """
    celery = Celery(
        app.import_name,
        broker=CeleryConfig.broker_url,
        backend=CeleryConfig.result_backend,
    )
    celery.config_from_object(CeleryConfig)

    period = float(sweep_interval_seconds)
    celery.conf.beat_schedule = {
        "sweep-expired-objects": {
            "task": SWEEP_TASK_NAME,
            "schedule": period,
            # A late sweep is superseded by the next one
            "options": {"expires": period},
        },
    }

    flask_app = app

    class FlaskContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            with flask_app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = FlaskContextTask
    return celery
