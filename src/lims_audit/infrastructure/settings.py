"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.
"""

import os
from typing import Optional

from lims_audit.infrastructure.config_manager import AuditConfig, ConfigManager, DatabaseConfig

# Application metadata
APP_NAME = "LIMS-Audit"
APP_VERSION = "1.0.0"


class Settings:
    """Application settings loaded from configuration manager and environment."""
    
    def __init__(self):
        """Initialize settings from environment."""
        self._config_manager: Optional[ConfigManager] = None
        
        self.app_name = os.getenv("LA_APP_NAME", APP_NAME)
        
        # Logging
        self.log_level = os.getenv("LA_LOG_LEVEL", "INFO")
        self.log_json = os.getenv("LA_LOG_JSON", "false").lower() == "true"
    
    @property
    def config_manager(self) -> ConfigManager:
        """Get configuration manager instance (loaded lazily from environment)."""
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager
    
    @property
    def db_config(self) -> DatabaseConfig:
        return self.config_manager.get_database_config()
    
    @property
    def audit_config(self) -> AuditConfig:
        return self.config_manager.get_audit_config()


# Global settings instance
settings = Settings()
