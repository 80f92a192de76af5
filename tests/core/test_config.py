from app.core.config import Settings
from app.core.enums import Environment


def test_settings__validate_runtime__reports_missing_and_short_secrets():
    config = Settings(JWT_SECRET=None, ENCRYPTION_KEY="short", _env_file=None)

    problems = config.validate_runtime()

    assert "JWT_SECRET is required." in problems
    assert any("ENCRYPTION_KEY" in problem for problem in problems)


def test_settings__validate_runtime__complete_configuration():
    config = Settings(JWT_SECRET="j" * 32, ENCRYPTION_KEY="e" * 32, _env_file=None)

    assert config.validate_runtime() == []


def test_settings__short_jwt_secret():
    config = Settings(JWT_SECRET="tiny", ENCRYPTION_KEY=None, _env_file=None)

    assert config.validate_runtime() == ["JWT_SECRET must be at least 32 characters."]


def test_settings__relative_sqlite_path_is_made_absolute():
    config = Settings(DATABASE_URL="sqlite+aiosqlite:///data/app.db", _env_file=None)

    path = config.DATABASE_URL.removeprefix("sqlite+aiosqlite:///")
    assert path.startswith("/")
    assert path.endswith("data/app.db")


def test_settings__environment_flags():
    config = Settings(ENVIRONMENT=Environment.PRODUCTION, _env_file=None)

    assert config.is_production is True
    assert config.is_development is False
