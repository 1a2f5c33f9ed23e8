from labloop.config import Settings
from labloop.services.id_allocator import init_id_allocator


def _settings(**overrides):
    return Settings(DATABASE_URL="sqlite:///:memory:", **overrides)


def test_reset_enabled_outside_production():
    assert _settings(ENVIRONMENT="development").counter_reset_enabled
    assert _settings(ENVIRONMENT="test").counter_reset_enabled


def test_reset_disabled_in_production_unless_allowed():
    assert not _settings(ENVIRONMENT="production").counter_reset_enabled
    assert _settings(
        ENVIRONMENT="Production", ALLOW_COUNTER_RESET=True
    ).counter_reset_enabled


def test_allowed_origins_list():
    settings = _settings(ALLOWED_ORIGINS="http://a.example, http://b.example")

    assert settings.allowed_origins_list == ["http://a.example", "http://b.example"]


def test_init_id_allocator_uses_settings(session_factory):
    allocator = init_id_allocator(session_factory)

    assert allocator.max_retries == 3
    assert allocator.backoff_seconds == 0.1
    assert allocator.allow_reset
    assert allocator.allocate("DOC") == "DOC00000001"
