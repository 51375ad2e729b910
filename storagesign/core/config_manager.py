"""
Configuration management for StorageSign.

Handles loading and validation of the signing account, the default Shared Key
variant and logging settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from storagesign.auth.exceptions import InvalidAccountKeyError
from storagesign.auth.sharedkey import decode_account_key
from storagesign.auth.variants import AuthVariant, SECONDARY_SUFFIX
from storagesign.core.logging_config import setup_logging

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AccountConfig(BaseModel):
    """Storage account identity and secret."""
    name: str = Field(default="devstoreaccount1", min_length=1)
    key: str = Field(
        default="Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==",
        description="Base64-encoded account key"
    )
    secondary: bool = Field(
        default=False,
        description="Address the read-only secondary endpoint of a geo-replicated account"
    )
    
    @field_validator("key")
    @classmethod
    def validate_key(cls, v: str) -> str:
        """Reject keys that cannot be decoded before any request is signed."""
        try:
            decode_account_key(v)
        except InvalidAccountKeyError as e:
            raise ValueError(e.message) from e
        return v
    
    @property
    def endpoint_account_name(self) -> str:
        """Account name as it appears in the endpoint hostname."""
        if self.secondary and not self.name.endswith(SECONDARY_SUFFIX):
            return self.name + SECONDARY_SUFFIX
        return self.name


class SigningConfig(BaseModel):
    """Request signing defaults."""
    default_variant: AuthVariant = AuthVariant.SHARED_KEY


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "json"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'storagesign.auth': 'DEBUG'}"
    )


class StorageSignConfig(BaseModel):
    """Main StorageSign configuration schema."""
    
    version: str = Field(default="0.1.0", description="Configuration version")
    
    account: AccountConfig = Field(default_factory=AccountConfig)
    
    signing: SigningConfig = Field(default_factory=SigningConfig)
    
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    
    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v
    
    model_config = ConfigDict(use_enum_values=True)


class ConfigManager:
    """
    Manages StorageSign configuration loading and validation.
    
    Configuration precedence (highest to lowest):
    1. Explicit overrides
    2. Environment variables (STORAGESIGN_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """
    
    def __init__(self):
        self._config: Optional[StorageSignConfig] = None
        self._config_file: Optional[Path] = None
    
    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> StorageSignConfig:
        """
        Load and validate configuration from multiple sources.
        
        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of caller-supplied overrides
        
        Returns:
            Validated StorageSignConfig instance
        
        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading StorageSign configuration")
        
        config_dict: Dict[str, Any] = {}
        
        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")
        
        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")
        
        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)
            logger.info(f"Applied {len(overrides)} explicit overrides")
        
        try:
            self._config = StorageSignConfig(**config_dict)
            logger.info("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e.error_count()} error(s)")
            raise
    
    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)
        
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")
        
        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")
    
    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        config: Dict[str, Any] = {}
        
        if account_name := os.getenv("STORAGESIGN_ACCOUNT_NAME"):
            config.setdefault("account", {})["name"] = account_name
        if account_key := os.getenv("STORAGESIGN_ACCOUNT_KEY"):
            config.setdefault("account", {})["key"] = account_key
        
        if variant := os.getenv("STORAGESIGN_AUTH_VARIANT"):
            config.setdefault("signing", {})["default_variant"] = variant
        
        if log_level := os.getenv("STORAGESIGN_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv("STORAGESIGN_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file
        
        return config
    
    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()
        
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        
        return result
    
    def _log_configuration(self) -> None:
        """Log the loaded configuration with the account key redacted."""
        if not self._config:
            return
        
        config_dict = self._config.model_dump()
        config_dict["account"]["key"] = "***REDACTED***"
        
        logger.info(f"Active configuration: {json.dumps(config_dict, indent=2)}")
    
    def get_config(self) -> StorageSignConfig:
        """
        Get the loaded configuration.
        
        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config
    
    def reload(self) -> StorageSignConfig:
        """Reload configuration from the same sources."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
    
    def configure_logging(self) -> None:
        """Apply the logging section of the loaded configuration."""
        log_config = self.get_config().logging
        setup_logging(
            level=log_config.level,
            format_type=log_config.format,
            log_file=log_config.file,
            rotation_size=log_config.rotation_size,
            rotation_count=log_config.rotation_count,
            module_levels=log_config.module_levels,
        )
