"""
Shared pytest fixtures and configuration for the DropLink test suite.

This module provides:
- Hypothesis configuration for property-based testing
- A controllable clock for simulated time
- Storage, service and Flask application fixtures on a temporary directory
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

# Hypothesis configuration
from hypothesis import settings, HealthCheck, Phase

from app_factory import AppConfig, create_app
from domain.file_sharing import ObjectKey, ObjectRecord
from infrastructure.json_metadata_index import JsonMetadataIndex
from infrastructure.local_blob_store import LocalBlobStore

# Register Hypothesis profiles
settings.register_profile(
    "default",
    max_examples=100,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.target, Phase.shrink],
)
settings.register_profile(
    "ci",
    max_examples=200,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.register_profile(
    "dev",
    max_examples=10,
    deadline=None,
    suppress_health_check=[HealthCheck.too_slow, HealthCheck.function_scoped_fixture],
)
settings.load_profile("default")


RETENTION_SECONDS = 600
MAX_UPLOAD_BYTES = 1024


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = None):
        self._now = start or datetime.now(timezone.utc)
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            return self._now

    def advance(self, seconds: float = 0, **kwargs) -> datetime:
        with self._lock:
            self._now += timedelta(seconds=seconds, **kwargs)
            return self._now


# =============================================================================
# Time Fixtures
# =============================================================================

@pytest.fixture
def frozen_clock() -> FrozenClock:
    """Provide a clock frozen at the current wall-clock time."""
    return FrozenClock()


@pytest.fixture
def retention() -> timedelta:
    return timedelta(seconds=RETENTION_SECONDS)


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(str(tmp_path / "uploads"))


@pytest.fixture
def metadata_index(tmp_path) -> JsonMetadataIndex:
    return JsonMetadataIndex(str(tmp_path / "fileMetadata.json"))


@pytest.fixture
def make_record(frozen_clock):
    """Factory for ObjectRecords with a fresh key, created now by default."""

    def _make(name="report.pdf", size_bytes=10, mime_type="application/pdf", created_at=None):
        return ObjectRecord(
            id=ObjectKey.generate(name).value,
            original_name=name,
            mime_type=mime_type,
            size_bytes=size_bytes,
            created_at=created_at or frozen_clock(),
        )

    return _make


# =============================================================================
# Flask Application Fixtures
# =============================================================================

@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    """Configuration on a temporary directory with the sweep thread disabled."""
    return AppConfig(
        storage_dir=str(tmp_path / "data"),
        max_upload_bytes=MAX_UPLOAD_BYTES,
        retention_seconds=RETENTION_SECONDS,
        sweep_interval_seconds=60,
        sweep_mode="thread",
        index_lock_backend="thread",
        trust_proxy=False,
        start_scheduler=False,
    )


@pytest.fixture
def app(app_config, frozen_clock):
    flask_app = create_app(app_config, clock=frozen_clock)
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.sweep_scheduler.stop()


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests (real filesystem, threads)"
    )
    config.addinivalue_line(
        "markers", "property: Property-based tests using Hypothesis"
    )


def pytest_collection_modifyitems(config, items):
    """
    Automatically mark tests based on their location.

    - tests/unit/* -> @pytest.mark.unit
    - tests/integration/* -> @pytest.mark.integration
    - tests/property/* -> @pytest.mark.property
    """
    for item in items:
        test_path = str(item.fspath)

        if "/unit/" in test_path or "\\unit\\" in test_path:
            item.add_marker(pytest.mark.unit)
        elif "/integration/" in test_path or "\\integration\\" in test_path:
            item.add_marker(pytest.mark.integration)
        elif "/property/" in test_path or "\\property\\" in test_path:
            item.add_marker(pytest.mark.property)
