"""
Configuration management for schema_crud
"""
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseModel):
    """Database connection configuration"""
    model_config = ConfigDict(populate_by_name=True)

    type: str
    host: str = "localhost"
    port: Optional[int] = None
    # File path (or ":memory:") for sqlite
    database: str
    username: str = ""
    password: str = ""
    schema_name: Optional[str] = Field(default=None, alias="schema")
    ssl_mode: Optional[str] = "prefer"
    charset: Optional[str] = None
    odbc_driver: Optional[str] = None

    def to_connector_config(self) -> Dict[str, Any]:
        """Plain dictionary handed to a connector"""
        return self.model_dump(by_alias=True)


_MYSQL_TEXT = ('char', 'varchar', 'text', 'tinytext', 'mediumtext', 'longtext')
_MYSQL_NUMERIC = ('int', 'float', 'decimal', 'double')
_MYSQL_TEMPORAL = ('date', 'datetime', 'timestamp', 'time')


class TypeFamilies(BaseModel):
    """
    Raw type names grouped into the families the validator checks.

    Immutable; one instance is handed to the validator of each connection.
    """
    model_config = ConfigDict(frozen=True)

    text: Tuple[str, ...] = _MYSQL_TEXT
    numeric: Tuple[str, ...] = _MYSQL_NUMERIC
    temporal: Tuple[str, ...] = _MYSQL_TEMPORAL

    @classmethod
    def for_dialect(cls, db_type: str) -> "TypeFamilies":
        """Default families for a database type"""
        db_type = (db_type or '').lower()
        if db_type in ('postgresql', 'postgres'):
            return cls(
                text=('varchar', 'bpchar', 'text', 'char'),
                numeric=('int2', 'int4', 'int8', 'float4', 'float8', 'numeric'),
                temporal=('date', 'time', 'timestamp')
            )
        if db_type == 'sqlite':
            return cls(
                text=('char', 'varchar', 'text', 'clob'),
                numeric=('int', 'integer', 'real', 'float', 'double', 'numeric', 'decimal'),
                temporal=('date', 'datetime', 'timestamp', 'time')
            )
        return cls()

    def family_of(self, type_name: str) -> Optional[str]:
        """Family name ('text', 'numeric' or 'temporal') a type belongs to"""
        for family in ('text', 'numeric', 'temporal'):
            if type_name in getattr(self, family):
                return family
        return None


class LoggingConfig(BaseModel):
    """Logging configuration"""
    level: str = "INFO"
    format: str = "text"
    file: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class OutputConfig(BaseModel):
    """Result presentation"""
    json_output: bool = False


class Config(BaseSettings):
    """Main configuration class"""
    model_config = SettingsConfigDict(
        env_prefix="SCHEMA_CRUD_",
        env_nested_delimiter="__",
        extra="ignore"
    )

    database: DatabaseConfig
    type_families: Optional[TypeFamilies] = None
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> "Config":
        """Load configuration from YAML file"""
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, "r") as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> "Config":
        """Load configuration from SCHEMA_CRUD_* variables, reading .env first"""
        load_dotenv(env_file)
        return cls()

    def get_type_families(self) -> TypeFamilies:
        """Configured families, or the defaults for the database type"""
        return self.type_families or TypeFamilies.for_dialect(self.database.type)
