"""
Connector factory for creating database-specific connectors
"""
import importlib
from typing import Any, Dict, Union

from schema_crud.connectors.base import BaseConnector


class ConnectorFactory:
    """Factory for creating database connectors"""

    # Connector classes are imported on first use, so a missing driver only
    # matters for the database type that needs it.
    _connectors: Dict[str, Union[str, type]] = {
        'mysql': 'schema_crud.connectors.mysql:MySQLConnector',
        'postgresql': 'schema_crud.connectors.postgres:PostgreSQLConnector',
        'postgres': 'schema_crud.connectors.postgres:PostgreSQLConnector',
        'sqlserver': 'schema_crud.connectors.sqlserver:SQLServerConnector',
        'mssql': 'schema_crud.connectors.sqlserver:SQLServerConnector',
        'sqlite': 'schema_crud.connectors.sqlite:SQLiteConnector',
    }

    @classmethod
    def create_connector(cls, db_type: str, config: Dict[str, Any]) -> BaseConnector:
        """
        Create a database connector based on type

        Args:
            db_type: Type of database (mysql, postgresql, sqlserver, sqlite)
            config: Database configuration dictionary

        Returns:
            Connector instance (not yet connected)

        Raises:
            ValueError: If database type is not supported
        """
        db_type_lower = db_type.lower()

        if db_type_lower not in cls._connectors:
            raise ValueError(
                f"Unsupported database type: {db_type}. "
                f"Supported types: {', '.join(cls._connectors.keys())}"
            )

        connector_class = cls._resolve(cls._connectors[db_type_lower])
        return connector_class(config)

    @classmethod
    def register_connector(cls, db_type: str, connector_class: Union[str, type]) -> None:
        """
        Register a new connector type

        Args:
            db_type: Type identifier for the database
            connector_class: Connector class, or its ``module:Class`` path
        """
        cls._connectors[db_type.lower()] = connector_class

    @classmethod
    def get_supported_types(cls) -> list:
        """Get list of supported database types"""
        return list(cls._connectors.keys())

    @staticmethod
    def _resolve(target: Union[str, type]) -> type:
        if isinstance(target, type):
            return target
        module_name, class_name = target.split(':')
        return getattr(importlib.import_module(module_name), class_name)
