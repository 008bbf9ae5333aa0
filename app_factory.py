"""
Application Factory

Creates and configures Flask application with all dependencies.
This factory pattern improves testability by allowing dependency injection
and configuration overrides.
"""

import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Callable, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from application.dependency_container import DependencyContainer
from application.event_publisher import EventPublisher
from application.share_service import ShareService
from application.sweep_scheduler import SweepScheduler
from application.upload_service import UploadService
from config.celery_config import CeleryConfig, make_celery
from config.redis_config import create_redis_client, redis_health_check
from domain.file_sharing import GarbageCollector, IBlobStore, IMetadataIndex, utcnow
from infrastructure.index_lock import RedisIndexLock, ThreadIndexLock
from infrastructure.json_metadata_index import JsonMetadataIndex
from infrastructure.local_blob_store import LocalBlobStore

logger = logging.getLogger(__name__)

SWEEP_MODES = ("thread", "celery", "off")
LOCK_BACKENDS = ("thread", "redis")

# Room for multipart boundaries and part headers on top of the file itself
MULTIPART_OVERHEAD_BYTES = 64 * 1024

# The Redis lock lease outlives a sweep running up to the Celery hard limit
LOCK_LEASE_MARGIN_SECONDS = 60


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class AppConfig:
    """
    Application configuration.

    Values come from the environment; keyword arguments override them,
    which is how tests point the app at a temporary directory.
    """

    def __init__(self, **overrides):
        self.host = os.getenv("HOST", "0.0.0.0")
        self.port = int(os.getenv("PORT", 3001))
        self.storage_dir = os.getenv("STORAGE_DIR", "./data")
        self.max_upload_bytes = int(os.getenv("MAX_UPLOAD_BYTES", 100 * 1024 * 1024))
        self.retention_seconds = float(os.getenv("RETENTION_SECONDS", 600))
        self.sweep_interval_seconds = float(os.getenv("SWEEP_INTERVAL_SECONDS", 60))
        self.sweep_mode = os.getenv("SWEEP_MODE", "thread").lower()
        self.index_lock_backend = os.getenv("INDEX_LOCK_BACKEND", "").lower() or None
        self.trust_proxy = _env_bool("TRUST_PROXY")
        self.debug = _env_bool("FLASK_DEBUG")
        self.start_scheduler = True

        for name, value in overrides.items():
            if not hasattr(self, name):
                raise TypeError(f"Unknown configuration option: {name}")
            setattr(self, name, value)

        if self.index_lock_backend is None:
            # A worker process sweeping the index needs a cross-process lock
            self.index_lock_backend = "redis" if self.sweep_mode == "celery" else "thread"

    @property
    def upload_dir(self) -> str:
        return str(Path(self.storage_dir) / "uploads")

    @property
    def snapshot_path(self) -> str:
        return str(Path(self.storage_dir) / "fileMetadata.json")

    @property
    def retention(self) -> timedelta:
        return timedelta(seconds=self.retention_seconds)

    def validate(self) -> None:
        """
        Reject configurations the service cannot honour.

        Raises:
            ValueError: On an invalid value
        """
        if self.max_upload_bytes < 0:
            raise ValueError("MAX_UPLOAD_BYTES must not be negative")
        if self.retention_seconds <= 0:
            raise ValueError("RETENTION_SECONDS must be positive")
        if self.sweep_interval_seconds <= 0:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be positive")
        if self.sweep_interval_seconds >= self.retention_seconds:
            raise ValueError("SWEEP_INTERVAL_SECONDS must be shorter than RETENTION_SECONDS")
        if self.sweep_mode not in SWEEP_MODES:
            raise ValueError(f"SWEEP_MODE must be one of {', '.join(SWEEP_MODES)}")
        if self.index_lock_backend not in LOCK_BACKENDS:
            raise ValueError(f"INDEX_LOCK_BACKEND must be one of {', '.join(LOCK_BACKENDS)}")


def create_app(
    config: Optional[AppConfig] = None,
    clock: Callable[[], datetime] = utcnow,
) -> Flask:
    """
    Create and configure Flask application.

    Args:
        config: Application configuration, uses default if None
        clock: Source of the current time, injectable for tests

    Returns:
        Configured Flask application
    """
    if config is None:
        config = AppConfig()
    config.validate()

    # Create Flask app
    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = config.max_upload_bytes + MULTIPART_OVERHEAD_BYTES
    app.config["ERROR_404_HELP"] = False
    # flask-restx otherwise adds str(error) to every handled error body
    app.config["ERROR_INCLUDE_MESSAGE"] = False
    app.droplink_config = config

    if config.trust_proxy:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Configure CORS
    CORS(
        app,
        resources={
            r"/*": {
                "origins": "*",
                "methods": ["GET", "POST", "OPTIONS"],
                "allow_headers": ["Content-Type"],
                "max_age": 3600,
            }
        },
    )

    # Initialize services
    _initialize_services(app, config, clock)

    # Initialize Celery for worker/beat processes
    app.celery = None
    if config.sweep_mode == "celery":
        app.celery = make_celery(app, config.sweep_interval_seconds)
        logger.info("Celery initialized, sweep runs on the beat schedule")

    # Register blueprints
    _register_blueprints(app)

    # Register health check endpoint
    _register_health_endpoint(app)

    if config.sweep_mode == "thread" and config.start_scheduler:
        app.sweep_scheduler.start()

    return app


def _build_index_lock(app: Flask, config: AppConfig):
    if config.index_lock_backend == "redis":
        app.redis_client = create_redis_client()
        return RedisIndexLock(
            app.redis_client,
            lease_seconds=CeleryConfig.task_time_limit + LOCK_LEASE_MARGIN_SECONDS,
        )

    app.redis_client = None
    return ThreadIndexLock()


def _initialize_services(app: Flask, config: AppConfig, clock: Callable[[], datetime]) -> None:
    """
    Initialize application services and attach to app context using DependencyContainer.

    Services are registered by interface and resolved via
    container.resolve() in API routes and tasks.

    Args:
        app: Flask application
        config: Application configuration
        clock: Source of the current time
    """
    container = DependencyContainer()

    # Infrastructure adapters
    index_lock = _build_index_lock(app, config)
    metadata_index = JsonMetadataIndex(config.snapshot_path, lock=index_lock)
    blob_store = LocalBlobStore(config.upload_dir)

    container.register_singleton(IMetadataIndex, metadata_index)
    container.register_singleton(IBlobStore, blob_store)

    # Domain events
    event_publisher = EventPublisher()
    container.setup_event_handlers(event_publisher)
    container.register_singleton(EventPublisher, event_publisher)

    # Domain services
    garbage_collector = GarbageCollector(
        metadata_index,
        blob_store,
        config.retention,
        clock=clock,
        event_publisher=event_publisher,
    )
    container.register_singleton(GarbageCollector, garbage_collector)

    # Application services
    upload_service = UploadService(
        metadata_index,
        blob_store,
        config.max_upload_bytes,
        clock=clock,
        event_publisher=event_publisher,
    )
    share_service = ShareService(metadata_index, blob_store, config.retention, clock=clock)

    container.register_singleton(UploadService, upload_service)
    container.register_singleton(ShareService, share_service)
    container.register_factory(
        SweepScheduler,
        lambda: SweepScheduler(
            container.resolve(GarbageCollector), config.sweep_interval_seconds
        ),
    )

    # Attach container to Flask app context
    app.container = container

    # Attach commonly-used services directly to app for convenient access
    app.upload_service = upload_service
    app.share_service = share_service
    app.garbage_collector = garbage_collector
    app.sweep_scheduler = container.resolve(SweepScheduler)

    logger.info(
        f"Storage at {config.storage_dir}: cap {config.max_upload_bytes} bytes, "
        f"retention {config.retention_seconds:g}s, sweep every "
        f"{config.sweep_interval_seconds:g}s ({config.sweep_mode})"
    )


def _register_blueprints(app: Flask) -> None:
    """
    Register API blueprints.

    Args:
        app: Flask application
    """
    from api import sharing_bp

    app.register_blueprint(sharing_bp)

    logger.debug("Sharing API registered with Swagger UI at /docs")


def _get_health_status(app: Flask) -> tuple[dict, int]:
    """
    Get health status of all system components.

    Args:
        app: Flask application instance

    Returns:
        Tuple of (health_status_dict, http_status_code)
    """
    config = app.droplink_config
    health_status = {
        "status": "ok",
        "storage": "unknown",
        "index": "unknown",
        "sweep": config.sweep_mode,
    }

    blob_store = app.container.resolve(IBlobStore)
    if blob_store.is_available():
        health_status["storage"] = "writable"
    else:
        health_status["storage"] = "unavailable"
        health_status["status"] = "degraded"

    metadata_index = app.container.resolve(IMetadataIndex)
    if metadata_index.is_readable():
        health_status["index"] = "readable"
    else:
        health_status["index"] = "unreadable"
        health_status["status"] = "degraded"

    if config.sweep_mode == "thread" and config.start_scheduler:
        if app.sweep_scheduler.is_running:
            health_status["sweep"] = "running"
        else:
            health_status["sweep"] = "stopped"
            health_status["status"] = "degraded"

    if app.redis_client is not None:
        if redis_health_check(app.redis_client):
            health_status["redis"] = "connected"
        else:
            health_status["redis"] = "disconnected"
            health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code


def _register_health_endpoint(app: Flask) -> None:
    """
    Register health check endpoint.

    Args:
        app: Flask application
    """

    @app.route("/health", methods=["GET"])
    def health():
        """
        Health check endpoint.
        Returns overall health status of the application and its dependencies.
        """
        health_status, status_code = _get_health_status(app)
        return jsonify(health_status), status_code
