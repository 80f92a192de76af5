import pytest

from app.core.config import Settings
from app.core.enums import Environment
from app.core.setup import check_runtime_configuration, initialize_workspace


def test_check_runtime_configuration__production_refuses_to_start():
    config = Settings(ENVIRONMENT=Environment.PRODUCTION, JWT_SECRET=None, _env_file=None)

    with pytest.raises(SystemExit):
        check_runtime_configuration(config)


def test_check_runtime_configuration__development_keeps_running(caplog):
    config = Settings(ENVIRONMENT=Environment.DEVELOPMENT, JWT_SECRET=None, _env_file=None)

    check_runtime_configuration(config)

    assert "JWT_SECRET is required." in caplog.text


def test_check_runtime_configuration__valid_production_config():
    config = Settings(
        ENVIRONMENT=Environment.PRODUCTION, JWT_SECRET="j" * 32, ENCRYPTION_KEY=None, _env_file=None
    )

    check_runtime_configuration(config)


def test_initialize_workspace__creates_database_directory(tmp_path):
    db_path = tmp_path / "nested" / "app.db"
    config = Settings(DATABASE_URL=f"sqlite+aiosqlite:///{db_path}", _env_file=None)

    initialize_workspace(config)

    assert db_path.parent.is_dir()


def test_initialize_workspace__ignores_in_memory_database(tmp_path):
    config = Settings(DATABASE_URL="sqlite+aiosqlite:///:memory:", _env_file=None)

    initialize_workspace(config)
