import io

import pytest

from app_factory import MULTIPART_OVERHEAD_BYTES, AppConfig, create_app
from config.celery_config import SWEEP_QUEUE, SWEEP_TASK_NAME, CeleryConfig
from infrastructure.index_lock import RedisIndexLock, ThreadIndexLock


class TestAppConfig:
    def test_defaults(self, monkeypatch):
        for name in ("PORT", "STORAGE_DIR", "MAX_UPLOAD_BYTES", "RETENTION_SECONDS",
                     "SWEEP_INTERVAL_SECONDS", "SWEEP_MODE", "INDEX_LOCK_BACKEND"):
            monkeypatch.delenv(name, raising=False)

        config = AppConfig()

        assert config.port == 3001
        assert config.max_upload_bytes == 100 * 1024 * 1024
        assert config.retention_seconds == 600
        assert config.sweep_interval_seconds == 60
        assert config.sweep_mode == "thread"
        assert config.index_lock_backend == "thread"
        assert config.upload_dir.endswith("uploads")
        assert config.snapshot_path.endswith("fileMetadata.json")

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PORT", "8080")
        monkeypatch.setenv("RETENTION_SECONDS", "3600")
        monkeypatch.setenv("SWEEP_MODE", "celery")
        monkeypatch.delenv("INDEX_LOCK_BACKEND", raising=False)

        config = AppConfig()

        assert config.port == 8080
        assert config.retention_seconds == 3600
        assert config.index_lock_backend == "redis"

    def test_unknown_override_rejected(self):
        with pytest.raises(TypeError):
            AppConfig(retention_minutes=5)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"retention_seconds": 0},
            {"sweep_interval_seconds": 0},
            {"sweep_interval_seconds": 600, "retention_seconds": 600},
            {"max_upload_bytes": -1},
            {"sweep_mode": "cron"},
            {"index_lock_backend": "zookeeper"},
        ],
    )
    def test_invalid_values_rejected(self, overrides):
        config = AppConfig(**overrides)
        with pytest.raises(ValueError):
            config.validate()


class TestCreateApp:
    def test_transport_limit_has_multipart_slack(self, app, app_config):
        assert app.config["MAX_CONTENT_LENGTH"] == app_config.max_upload_bytes + MULTIPART_OVERHEAD_BYTES

    def test_error_bodies_carry_no_exception_text(self, app):
        assert app.config["ERROR_INCLUDE_MESSAGE"] is False

    def test_storage_layout(self, app, app_config, tmp_path):
        assert (tmp_path / "data" / "uploads").is_dir()
        assert str(app.upload_service.metadata_index.snapshot_path).endswith("fileMetadata.json")

    def test_thread_lock_by_default(self, app):
        assert isinstance(app.upload_service.metadata_index.lock, ThreadIndexLock)
        assert app.celery is None

    def test_scheduler_not_started_when_disabled(self, app):
        assert not app.sweep_scheduler.is_running

    def test_scheduler_started_in_thread_mode(self, app_config):
        app_config.start_scheduler = True
        app = create_app(app_config)
        try:
            assert app.sweep_scheduler.is_running
        finally:
            app.sweep_scheduler.stop()

    def test_celery_mode_uses_redis_lock_and_no_thread(self, app_config):
        app_config.sweep_mode = "celery"
        app_config.index_lock_backend = "redis"
        app_config.start_scheduler = True

        app = create_app(app_config)

        assert isinstance(app.upload_service.metadata_index.lock, RedisIndexLock)
        assert app.upload_service.metadata_index.lock.lease_seconds > CeleryConfig.task_time_limit
        assert not app.sweep_scheduler.is_running
        assert "sweep-expired-objects" in app.celery.conf.beat_schedule
        assert app.celery.conf.task_routes[SWEEP_TASK_NAME] == {"queue": SWEEP_QUEUE}

    def test_trust_proxy_uses_forwarded_host(self, app_config):
        app_config.trust_proxy = True
        client = create_app(app_config).test_client()

        response = client.post(
            "/upload",
            data={"file": (io.BytesIO(b"x"), "x.txt")},
            content_type="multipart/form-data",
            headers={"X-Forwarded-Proto": "https", "X-Forwarded-Host": "drop.example.com"},
        )

        assert response.get_json()["shareUrl"].startswith("https://drop.example.com/file/")
