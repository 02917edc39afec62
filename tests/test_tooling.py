import json
import logging

from task_api.generate_openapi import generate_openapi
from task_api.logging_setup import setup_logging
from task_api.settings import get_settings


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in [
            "PERSISTENCE_BACKEND",
            "SQLITE_DB_PATH",
            "CORS_ALLOW_ORIGINS",
            "JWT_TTL_MINUTES",
            "BCRYPT_ROUNDS",
            "TASKS_PER_PAGE",
            "LOG_FILE",
        ]:
            monkeypatch.delenv(name, raising=False)
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.sqlite_db_path == "./data/tasks.db"
        assert settings.cors_allow_origins == ["*"]
        assert settings.jwt_ttl_minutes == 60
        assert settings.bcrypt_rounds == 12
        assert settings.tasks_per_page == 10
        assert settings.log_file is None

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "SQLite")
        monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.example, http://b.example")
        monkeypatch.setenv("TASKS_PER_PAGE", "25")
        monkeypatch.setenv("JWT_ALGORITHM", "hs512")
        settings = get_settings()
        assert settings.persistence_backend == "sqlite"
        assert settings.cors_allow_origins == ["http://a.example", "http://b.example"]
        assert settings.tasks_per_page == 25
        assert settings.jwt_algorithm == "HS512"

    def test_bad_values_fall_back(self, monkeypatch):
        monkeypatch.setenv("PERSISTENCE_BACKEND", "postgres")
        monkeypatch.setenv("TASKS_PER_PAGE", "many")
        monkeypatch.setenv("BCRYPT_ROUNDS", "99")
        settings = get_settings()
        assert settings.persistence_backend == "memory"
        assert settings.tasks_per_page == 10
        assert settings.bcrypt_rounds == 31


class TestLogging:
    def test_file_handler_and_reconfigure(self, tmp_path):
        log_file = tmp_path / "logs" / "api.log"
        root = logging.getLogger()
        before = list(root.handlers)
        try:
            setup_logging(level="DEBUG", log_file=log_file)
            setup_logging(level="DEBUG", log_file=log_file)
            ours = [h for h in root.handlers if h not in before]
            # stderr + file, not duplicated by the second call
            assert len(ours) == 2

            logging.getLogger("task_api.test").info("hello from tests")
            logging.getLogger("chatty.lib").info("should be filtered")
            for h in ours:
                h.flush()
            content = log_file.read_text(encoding="utf-8")
            assert "hello from tests" in content
            assert "should be filtered" not in content
        finally:
            setup_logging(level=get_settings().log_level)


class TestOpenAPI:
    def test_schema_written_with_tags(self, tmp_path):
        out = generate_openapi(tmp_path / "interfaces" / "openapi.json")
        schema = json.loads(out.read_text(encoding="utf-8"))
        assert {t["name"] for t in schema["tags"]} >= {"health", "auth", "tasks"}
        assert "/tasks/{task_id}" in schema["paths"]
        assert set(schema["paths"]["/tasks/{task_id}"]) >= {"get", "put", "patch", "delete"}
        assert "/register" in schema["paths"]
