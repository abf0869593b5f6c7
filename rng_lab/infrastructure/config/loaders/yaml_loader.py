import os
import json
import logging
from typing import Any, Dict, List, Optional

import yaml

CONFIG_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
SESSION_SCHEMA_PATH = os.path.join(CONFIG_DIR, 'schemas', 'session.schema.json')
DEFAULT_SESSION_CONFIG_PATH = os.path.abspath(os.path.join(
    CONFIG_DIR, '..', '..', 'application', 'config', 'default_session.yaml'
))


class ConfigError(Exception):
    """Raised when a configuration cannot be loaded or is invalid."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class FileNotFoundConfigError(ConfigError):
    def __init__(self, path: str, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"Configuration file not found: {path}")


class YamlParseError(ConfigError):
    def __init__(self, file_path: str, yaml_error: Exception):
        self.file_path = file_path
        self.yaml_error = yaml_error
        super().__init__(f"Error parsing YAML file {file_path}: {yaml_error}")


class SchemaValidationError(ConfigError):
    def __init__(self, file_path: str, errors: List[str]):
        self.file_path = file_path
        self.errors = errors
        details = "".join(f"\n  - {error}" for error in errors)
        super().__init__(f"Configuration validation failed for {file_path}:{details}")


class YamlConfigLoader:
    """
    Reads session configuration from YAML, validates it against a JSON
    schema and fills in the schema defaults.

    In strict mode (the default) every problem raises a ConfigError. With
    strict mode off, a missing or unparseable file yields ``default_config``
    when one is given, and a schema failure is logged and the config used
    as it is.
    """
    def __init__(self, schema_validator=None):
        """
        Args:
            schema_validator: SchemaValidator used when a schema path is given
        """
        self.logger = logging.getLogger("infrastructure.config.loader")
        self.schema_validator = schema_validator
        self.strict_mode = True

    def set_strict_mode(self, strict: bool = True) -> "YamlConfigLoader":
        self.strict_mode = strict
        return self

    def load_file(self, file_path: str, schema_path: Optional[str] = None,
                  default_config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Load one YAML file, optionally validating it.

        Args:
            file_path: Path to the YAML file
            schema_path: Optional JSON schema to validate against
            default_config: Fallback for a missing or unreadable file (non-strict only)

        Returns:
            Configuration dictionary with schema defaults applied

        Raises:
            FileNotFoundConfigError, YamlParseError, SchemaValidationError
        """
        try:
            config = self._read_yaml(file_path)
        except ConfigError as error:
            self.logger.error(error.message)
            if default_config is not None and not self.strict_mode:
                self.logger.warning(f"Using default configuration in place of {file_path}")
                return default_config
            raise

        if config is None:
            self.logger.warning(f"Empty configuration file: {file_path}")
            config = default_config if default_config is not None else {}

        if schema_path and self.schema_validator:
            config = self._validate(file_path, config, schema_path)

        return config

    def load_session_config(self, file_path: Optional[str] = None) -> Dict[str, Any]:
        """
        Load a session configuration; the packaged default when no path is given.

        Returns:
            Validated configuration with defaults applied
        """
        return self.load_file(file_path or DEFAULT_SESSION_CONFIG_PATH, SESSION_SCHEMA_PATH)

    def _read_yaml(self, file_path: str) -> Any:
        if not os.path.isfile(file_path):
            raise FileNotFoundConfigError(file_path)
        try:
            with open(file_path, 'r', encoding='utf-8') as file:
                config = yaml.safe_load(file)
        except yaml.YAMLError as e:
            raise YamlParseError(file_path, e) from e
        self.logger.debug(f"Read configuration from {file_path}")
        return config

    def _validate(self, file_path: str, config: Dict[str, Any], schema_path: str) -> Dict[str, Any]:
        schema = self._load_schema(schema_path)
        is_valid, errors, config = self.schema_validator.validate_with_defaults(config, schema)
        if is_valid:
            self.logger.debug(f"{file_path} is valid against {os.path.basename(schema_path)}")
            return config

        error = SchemaValidationError(file_path, errors)
        if self.strict_mode:
            raise error
        self.logger.warning(f"{error.message}\nUsing unvalidated configuration.")
        return config

    def _load_schema(self, schema_path: str) -> Dict[str, Any]:
        """
        Raises:
            FileNotFoundConfigError: If the schema file does not exist
            ConfigError: If the schema is not valid JSON
        """
        if not os.path.isfile(schema_path):
            raise FileNotFoundConfigError(schema_path, f"Schema file not found: {schema_path}")
        try:
            with open(schema_path, 'r', encoding='utf-8') as file:
                return json.load(file)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Error parsing schema file {schema_path}: {e}") from e
