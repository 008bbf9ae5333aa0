"""
Celery Application Instance

Creates the Celery app instance for use by workers and beat scheduler.
Uses the app factory to ensure all services are properly initialized.

    celery -A celery_app.celery_app worker -Q sweep
    celery -A celery_app.celery_app beat
"""

from app_factory import AppConfig, create_app
from config.logging_config import configure_logging

configure_logging()

# The web process must run with SWEEP_MODE=celery too, so both sides use the
# Redis index lock and the web process starts no sweep thread of its own
flask_app = create_app(AppConfig(sweep_mode="celery", start_scheduler=False))

# Get Celery instance from Flask app
celery_app = flask_app.celery

# Task modules are imported by name when the worker starts, after
# celery_app exists
celery_app.conf.imports = ("tasks.sweep_task",)
