"""
Methods Factory - Pick the Dialect Methods Provider for a connection

Providers are stateless, so one instance per factory key is cached and
shared. The key is the connection's provider_name when it has one
(decorated or wrapped connections register their own provider), otherwise
its driver family.
"""

import threading
from typing import Callable, Dict, List

from ..connection import DbConnection
from ..errors import UnsupportedProviderError
from .base import DialectMethods

import logging
logger = logging.getLogger(__name__)

MethodsFactoryFunc = Callable[[], DialectMethods]


class MethodsFactory:
    """
    Factory for Dialect Methods Providers.

    Usage:
        methods = MethodsFactory.get_methods(db)
        methods.create_table_if_not_exists(db, table)

        MethodsFactory.register_factory("audited_sqlite", AuditedSQLiteMethods)
    """

    # Registry of provider factories by key
    _factories: Dict[str, MethodsFactoryFunc] = {}
    _instances: Dict[str, DialectMethods] = {}
    _lock = threading.Lock()

    @staticmethod
    def _key(db: DbConnection) -> str:
        return (db.provider_name or db.family.value).lower()

    @classmethod
    def get_methods(cls, db: DbConnection) -> DialectMethods:
        """
        Provider for a connection.

        Args:
            db: Wrapped connection

        Returns:
            Shared DialectMethods instance

        Raises:
            UnsupportedProviderError: Nothing is registered for the connection
        """
        key = cls._key(db)
        with cls._lock:
            methods = cls._instances.get(key)
            if methods is not None:
                return methods
            factory = cls._factories.get(key)
            if factory is None:
                raise UnsupportedProviderError(f"No schema methods provider for: {key}", object_ref=db.name)
            methods = factory()
            cls._instances[key] = methods
            logger.debug(f"Created {methods!r} for {key}")
            return methods

    @classmethod
    def is_supported(cls, provider: str) -> bool:
        """Check if a provider key (family or custom name) is registered."""
        return provider.lower() in cls._factories

    @classmethod
    def supported_types(cls) -> List[str]:
        """Registered provider keys."""
        return list(cls._factories.keys())

    @classmethod
    def register_factory(cls, provider: str, factory: MethodsFactoryFunc):
        """
        Register (or replace) a provider factory.

        Args:
            provider: Driver family or custom provider name
            factory: Zero-argument callable returning a DialectMethods (a subclass works)
        """
        key = provider.lower()
        with cls._lock:
            cls._factories[key] = factory
            cls._instances.pop(key, None)
        logger.debug(f"Registered schema methods for: {provider}")


def get_methods(db: DbConnection) -> DialectMethods:
    """Shortcut for MethodsFactory.get_methods()."""
    return MethodsFactory.get_methods(db)


def _register_default_methods():
    """Register built-in providers. Called on module import."""
    from .sqlite_methods import SQLiteMethods
    from .sqlserver_methods import SQLServerMethods
    from .postgresql_methods import PostgreSQLMethods
    from .mysql_methods import MySQLMethods

    MethodsFactory.register_factory("sqlite", SQLiteMethods)
    MethodsFactory.register_factory("sqlserver", SQLServerMethods)
    MethodsFactory.register_factory("postgresql", PostgreSQLMethods)
    MethodsFactory.register_factory("postgres", PostgreSQLMethods)  # Alias
    MethodsFactory.register_factory("mysql", MySQLMethods)
    MethodsFactory.register_factory("mariadb", MySQLMethods)  # Alias


# Register on module import
_register_default_methods()
