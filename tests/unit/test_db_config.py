"""
Tests for database configuration and the database manager.
"""

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from tenant_access_core.db import (
    DatabaseConfig,
    DatabaseManager,
    TenantMember,
    close_db,
    get_db_manager,
    get_development_config,
    initialize_db,
)
from tenant_access_core.enums import Role
from tenant_access_core.exceptions import ServiceError, ValidationError


class TestDatabaseConfig:
    def test_postgres_connection_string(self):
        config = DatabaseConfig(
            host="db", database="tenants", username="app", password="secret", port="6543"
        )
        assert config.get_connection_string() == (
            "postgresql+psycopg://app:secret@db:6543/tenants"
        )
        assert not config.is_sqlite

    def test_url_wins(self):
        assert DatabaseConfig(url="sqlite:///x.db").get_connection_string() == "sqlite:///x.db"

    def test_missing_postgres_settings(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(host="db").get_connection_string()

    def test_unsupported_type(self):
        with pytest.raises(ValidationError):
            DatabaseConfig(db_type="oracle").get_connection_string()

    def test_repr_masks_password(self):
        assert "secret" not in repr(DatabaseConfig(password="secret"))

    def test_development_config_is_in_memory(self, monkeypatch):
        monkeypatch.delenv("DEV_DB_PATH", raising=False)
        config = get_development_config()
        assert config.is_sqlite
        assert config.database == ":memory:"
        assert config.development_mode


class TestDatabaseManager:
    def test_foreign_keys_are_enforced(self, db_session):
        db_session.add(TenantMember(tenant_id="missing-tenant", user_id="u", role=Role.MEMBER))
        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_scoped_session(self, db_manager):
        session = db_manager.get_session()
        assert session is db_manager.get_session()
        assert session.execute(text("SELECT 1")).scalar() == 1
        db_manager.close_session()
        assert db_manager.get_session() is not session

    def test_drop_tables_only_in_development(self):
        manager = DatabaseManager(DatabaseConfig(url="sqlite:///:memory:"))
        with pytest.raises(ServiceError):
            manager.drop_tables()
        manager.close()


class TestGlobalManager:
    def test_uninitialized(self):
        with pytest.raises(ServiceError):
            get_db_manager()

    def test_initialize_and_close(self):
        manager = initialize_db(get_development_config(":memory:"))
        assert get_db_manager() is manager
        close_db()
        with pytest.raises(ServiceError):
            get_db_manager()
