"""Configuration Manager for the Audit Trail.

This module loads the database and audit configuration used by the audit
trail from environment variables or a JSON file.

Security Impact:
    - Configuration is validated before use
    - Database paths are checked before any connection is attempted
    - Configuration values are never logged

Architecture:
    - Follows Hexagonal Architecture: Infrastructure layer isolated from domain
    - Type-safe configuration using Pydantic models
    - Fail-fast validation prevents runtime errors
"""

import codecs
import json
import locale
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)


class DatabaseConfig(BaseModel):
    """Database configuration for the audit storage adapter.
    
    Parameters:
        db_type: Type of database (only 'duckdb' is supported)
        db_path: Path to database file, or ':memory:'
        history_table: Name of the table History rows are written to
        directory_table: Name of the reference table directory table
    """
    
    db_type: str = Field("duckdb", description="Database type")
    db_path: Optional[str] = Field(None, description="Path to database file (for DuckDB)")
    history_table: str = Field("history", description="Table holding History rows")
    directory_table: str = Field("reference_tables", description="Reference table directory")
    
    @field_validator("db_type")
    @classmethod
    def validate_db_type(cls, v: str) -> str:
        """Validate database type."""
        supported_types = ["duckdb"]
        if v.lower() not in supported_types:
            raise ValueError(f"Unsupported database type: {v}. Supported: {supported_types}")
        return v.lower()
    
    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate database directory exists (if a path is provided)."""
        if v is None or v == ":memory:":
            return v
        
        db_path_obj = Path(v)
        # Check if parent directory exists (file may not exist yet)
        if not db_path_obj.parent.exists():
            raise ValueError(f"Database directory does not exist: {db_path_obj.parent}")
        
        return str(db_path_obj)
    
    @field_validator("history_table", "directory_table")
    @classmethod
    def validate_table_name(cls, v: str) -> str:
        """Table names are interpolated into SQL, so keep them to identifiers."""
        if not v.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {v!r}")
        return v
    
    def get_connection_string(self) -> str:
        """Get connection string for database.
        
        Returns:
            Database path, or ':memory:' for an in-memory database
        """
        return self.db_path or ":memory:"


class AuditConfig(BaseModel):
    """Audit trail behaviour settings.
    
    Parameters:
        payload_encoding: Text encoding of the changes payload
            (defaults to the platform's preferred encoding)
    """
    
    payload_encoding: str = Field(
        default_factory=lambda: locale.getpreferredencoding(False),
        description="Byte encoding of the changes payload"
    )
    
    @field_validator("payload_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        """Validate the encoding is known to Python."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f"Unknown payload encoding: {v}")
        return v


class ConfigManager:
    """Configuration manager for the audit trail.
    
    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        db_config = config.get_database_config()
        
        # Load from file
        config = ConfigManager.from_file("config.json")
        audit_config = config.get_audit_config()
        ```
    """
    
    def __init__(self, config_data: Dict[str, Any]):
        """Initialize configuration manager.
        
        Parameters:
            config_data: Configuration dictionary with 'database' and 'audit' sections
        """
        self._config_data = config_data
        self._database_config: Optional[DatabaseConfig] = None
        self._audit_config: Optional[AuditConfig] = None
    
    @classmethod
    def from_environment(cls) -> 'ConfigManager':
        """Load configuration from environment variables.
        
        Environment Variables:
            - LA_DB_TYPE: Database type (duckdb)
            - LA_DB_PATH: Path to database file
            - LA_HISTORY_TABLE: History table name
            - LA_DIRECTORY_TABLE: Reference table directory name
            - LA_PAYLOAD_ENCODING: Changes payload encoding
        
        A .env file in the working directory is loaded first if present.
        
        Returns:
            ConfigManager instance
        """
        env_path = Path.cwd() / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")
        
        database = {
            "db_type": os.getenv("LA_DB_TYPE", "duckdb"),
            "db_path": os.getenv("LA_DB_PATH"),
        }
        if os.getenv("LA_HISTORY_TABLE"):
            database["history_table"] = os.getenv("LA_HISTORY_TABLE")
        if os.getenv("LA_DIRECTORY_TABLE"):
            database["directory_table"] = os.getenv("LA_DIRECTORY_TABLE")
        
        audit = {}
        if os.getenv("LA_PAYLOAD_ENCODING"):
            audit["payload_encoding"] = os.getenv("LA_PAYLOAD_ENCODING")
        
        return cls({"database": database, "audit": audit})
    
    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.
        
        Parameters:
            config_path: Path to configuration file
        
        Returns:
            ConfigManager instance
        
        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        
        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")
        
        return cls(config_data)
    
    def get_database_config(self) -> DatabaseConfig:
        """Get database configuration.
        
        Returns:
            DatabaseConfig instance
        """
        if self._database_config is None:
            self._database_config = DatabaseConfig(**self._config_data.get("database", {}))
        return self._database_config
    
    def get_audit_config(self) -> AuditConfig:
        """Get audit trail configuration.
        
        Returns:
            AuditConfig instance
        """
        if self._audit_config is None:
            self._audit_config = AuditConfig(**self._config_data.get("audit", {}))
        return self._audit_config
    
    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.
        
        Parameters:
            key: Configuration key (supports dot notation, e.g., "database.db_path")
            default: Default value if key not found
        
        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config_data
        
        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default
        
        return value if value is not None else default


# ============================================================================
# Convenience Functions
# ============================================================================

def get_database_config() -> DatabaseConfig:
    """Convenience function to get database configuration from environment.
    
    Returns:
        DatabaseConfig instance (defaults to an in-memory DuckDB database)
    """
    return ConfigManager.from_environment().get_database_config()


def get_audit_config() -> AuditConfig:
    """Convenience function to get audit configuration from environment.
    
    Returns:
        AuditConfig instance
    """
    return ConfigManager.from_environment().get_audit_config()
