from app.config import Settings


def test_blank_secrets_are_treated_as_unset(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "   ")
    monkeypatch.setenv("SENTRY_DSN", "")

    settings = Settings()

    assert settings.OPENAI_API_KEY is None
    assert settings.SENTRY_DSN is None


def test_scheduler_settings_from_env(monkeypatch):
    monkeypatch.setenv("SCHEDULER_ENABLED", "true")
    monkeypatch.setenv("ALERT_EVALUATION_TIMEOUT_SECONDS", "30")

    settings = Settings()

    assert settings.SCHEDULER_ENABLED is True
    assert settings.ALERT_EVALUATION_TIMEOUT_SECONDS == 30
    assert settings.SCHEDULER_TIMEZONE == "America/Sao_Paulo"
