"""
Unit tests for engine settings and error diagnostics.
"""
import pytest

from dataforge_schema.config import EngineSettings, get_settings, load_settings, set_settings, settings_from_mapping
from dataforge_schema.errors import DriverError, ValidationError, describe_driver_error


class TestEngineSettings:
    """Test settings loading from YAML and the environment."""

    def test_defaults(self):
        """Test default settings."""
        settings = load_settings(environ={})
        assert settings == EngineSettings()
        assert settings.classify_strict is False
        assert settings.validate_expressions is True

    def test_yaml_file(self, tmp_path):
        """Test values are read from a YAML file."""
        path = tmp_path / "settings.yaml"
        path.write_text("classify_strict: true\ntype_cache_size: 16\n", encoding="utf-8")

        settings = load_settings(path, environ={})

        assert settings.classify_strict is True
        assert settings.type_cache_size == 16

    def test_yaml_section(self, tmp_path):
        """Test settings nested under the package key."""
        path = tmp_path / "app.yaml"
        path.write_text("dataforge_schema:\n  verify_after_create: yes\nother_app:\n  x: 1\n", encoding="utf-8")

        assert load_settings(path, environ={}).verify_after_create is True

    def test_config_path_from_environment(self, tmp_path):
        """Test the settings file path can come from the environment."""
        path = tmp_path / "env.yaml"
        path.write_text("log_sql: false\n", encoding="utf-8")

        settings = load_settings(environ={"DATAFORGE_SCHEMA_CONFIG": str(path)})

        assert settings.log_sql is False

    def test_environment_overrides_yaml(self, tmp_path):
        """Test environment variables win over the file."""
        path = tmp_path / "settings.yaml"
        path.write_text("type_cache_size: 16\n", encoding="utf-8")

        settings = load_settings(path, environ={"DATAFORGE_SCHEMA_TYPE_CACHE_SIZE": "32",
                                                "DATAFORGE_SCHEMA_WILDCARD_CASE_SENSITIVE": "on"})

        assert settings.type_cache_size == 32
        assert settings.wildcard_case_sensitive is True

    def test_missing_file(self, tmp_path):
        """Test a missing file falls back to defaults."""
        assert load_settings(tmp_path / "missing.yaml", environ={}) == EngineSettings()

    def test_unknown_keys_ignored(self):
        """Test unknown settings are ignored."""
        assert settings_from_mapping({"colour": "blue"}) == EngineSettings()

    @pytest.mark.parametrize("values", [
        {"classify_strict": "maybe"},
        {"type_cache_size": "lots"},
        {"type_cache_size": -1},
    ])
    def test_invalid_values(self, values):
        """Test invalid values raise ValidationError."""
        with pytest.raises(ValidationError):
            settings_from_mapping(values)

    def test_yaml_must_be_mapping(self, tmp_path):
        """Test a YAML list is rejected."""
        path = tmp_path / "bad.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ValidationError):
            load_settings(path, environ={})

    def test_active_settings(self):
        """Test installing settings globally."""
        custom = EngineSettings(log_sql=False)
        set_settings(custom)
        assert get_settings() is custom

    def test_to_dict(self):
        """Test settings export."""
        data = EngineSettings().to_dict()
        assert data["type_cache_size"] == EngineSettings().type_cache_size
        assert "mysql_table_options" in data


class TestDriverErrorDiagnostics:
    """Test hints derived from driver messages."""

    def test_sqlite_missing_table(self):
        """Test SQLite object-not-found messages."""
        info = describe_driver_error("no such table: Orders", "sqlite")
        assert info.title == "Object not found"
        assert "Orders" in info.hint

    def test_postgresql_aborted_transaction(self):
        """Test PostgreSQL aborted transactions."""
        info = describe_driver_error(
            "current transaction is aborted, commands ignored until end of transaction block", "postgresql")
        assert info.title == "Transaction aborted"

    def test_generic_patterns(self):
        """Test patterns shared by every family."""
        assert describe_driver_error("Incorrect syntax near 'x'", "sqlserver").title == "Syntax error"
        assert describe_driver_error("MySQL server has gone away", "mysql").title == "Connection lost"

    def test_unknown_family_searches_all(self):
        """Test messages are matched across families when the family is unknown."""
        assert describe_driver_error("Table 'shop.orders' doesn't exist").title == "Object not found"

    def test_fallback(self):
        """Test unmatched messages get a generic hint."""
        info = describe_driver_error("something odd", "sqlite")
        assert info.title == "Driver error"
        assert "something odd" in info.format_full()

    def test_driver_error(self):
        """Test DriverError keeps the original exception and SQL."""
        original = RuntimeError("database is locked")
        error = DriverError(str(original), original=original, sql="DROP TABLE t", family="sqlite")
        assert error.original is original
        assert error.kind == "driver"
        assert error.info.title == "Database locked"
        assert "[sql: DROP TABLE t]" in str(error)

    def test_validation_error_is_value_error(self):
        """Test model errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            raise ValidationError("bad", object_ref="T")
