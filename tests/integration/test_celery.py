"""Integration tests for the Celery configuration."""

import pytest

pytestmark = pytest.mark.integration


class TestCeleryConfig:
    def test_celery_app_is_importable(self):
        from config.celery import app

        assert app.main == "storefront"

    def test_celery_app_exported_from_init(self):
        from config import celery_app

        assert celery_app.main == "storefront"

    def test_celery_serializer_is_json(self, settings):
        assert settings.CELERY_TASK_SERIALIZER == "json"
        assert settings.CELERY_RESULT_SERIALIZER == "json"
        assert settings.CELERY_ACCEPT_CONTENT == ["json"]

    def test_celery_timezone_matches_django(self, settings):
        assert settings.CELERY_TIMEZONE == settings.TIME_ZONE

    def test_time_zone_defaults_to_utc(self, settings):
        assert settings.TIME_ZONE == "UTC"
        assert settings.USE_TZ is True

    def test_outbox_publisher_is_scheduled(self, settings):
        schedule = settings.CELERY_BEAT_SCHEDULE["publish-outbox-events"]
        assert schedule["task"] == "core.publish_outbox_events"


class TestDebugTask:
    def test_debug_task_returns_success(self):
        from modules.core.tasks import debug_task

        result = debug_task.delay()

        assert result.successful()
        assert result.result["status"] == "ok"

    def test_debug_task_direct_call(self):
        from modules.core.tasks import debug_task

        assert debug_task() == {"status": "ok", "message": "Celery is working"}
