import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional, Union

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
DEFAULT_LOG_PATH = 'logs/rng_lab.log'

DEFAULT_LOGGING_CONFIG: Dict[str, Any] = {
    'level': 'INFO',
    'console': True,
    'file': {'enabled': False, 'path': DEFAULT_LOG_PATH, 'level': 'DEBUG'},
    'loggers': {
        'domain.spin': {'level': 'INFO'},
        'application.session': {'level': 'INFO'},
        'infrastructure.scheduling': {'level': 'WARNING'}
    }
}


class LogManager:
    """
    Configures the root logger from the ``logging`` section of a session config.

    Layers log through dotted names (``domain.spin.engine``,
    ``application.session.<id>``); the config can set a level per prefix.
    Only handlers installed here are closed again by shutdown().
    """
    def __init__(self):
        self.root_logger = logging.getLogger()
        self.handlers: Dict[str, logging.Handler] = {}
        self.loggers: Dict[str, logging.Logger] = {}
        self.initialized = False

    def initialize(self, config: Dict[str, Any], force: bool = False):
        """
        Install handlers and levels.

        Args:
            config: Logging section (level, format, console, file, loggers)
            force: Re-apply even if already initialized
        """
        if self.initialized and not force:
            return

        level = self._get_log_level(config.get('level', 'INFO'))
        formatter = logging.Formatter(config.get('format', DEFAULT_FORMAT),
                                      config.get('date_format', DEFAULT_DATE_FORMAT))

        self._reset_root()
        self.root_logger.setLevel(level)

        if config.get('console', True):
            console_level = self._get_log_level(config.get('console_level', level))
            self._install('console', self._console_handler(console_level), formatter)

        file_config = config.get('file') or {}
        if file_config.get('enabled', False):
            self._install('file', self._file_handler(file_config, level), formatter)

        self._apply_logger_levels(config.get('loggers') or {}, level)

        self.initialized = True
        self.root_logger.debug(f"Logging initialized with handlers: {sorted(self.handlers)}")

    def shutdown(self):
        """Detach and close every handler this manager installed."""
        for handler in self.handlers.values():
            self.root_logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()
        self.initialized = False

    def _reset_root(self):
        for handler in list(self.root_logger.handlers):
            self.root_logger.removeHandler(handler)
        for handler in self.handlers.values():
            handler.close()
        self.handlers.clear()

    def _install(self, name: str, handler: logging.Handler, formatter: logging.Formatter):
        handler.setFormatter(formatter)
        self.root_logger.addHandler(handler)
        self.handlers[name] = handler

    def _console_handler(self, level: int) -> logging.Handler:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        return handler

    def _file_handler(self, file_config: Dict[str, Any], default_level: int) -> logging.Handler:
        """
        Build a size-rotated file handler, creating the log directory.

        Args:
            file_config: ``file`` section (path, level, max_bytes, backup_count)
            default_level: Level used when the section sets none
        """
        path = file_config.get('path', DEFAULT_LOG_PATH)
        log_dir = os.path.dirname(path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        handler = RotatingFileHandler(
            path,
            maxBytes=file_config.get('max_bytes', 10 * 1024 * 1024),
            backupCount=file_config.get('backup_count', 5),
            encoding='utf-8'
        )
        handler.setLevel(self._get_log_level(file_config.get('level', default_level)))
        return handler

    def _apply_logger_levels(self, loggers: Dict[str, Any], default_level: int):
        # Parents first, so a child's own setting is applied last
        for name in sorted(loggers, key=lambda n: n.count('.')):
            settings = loggers[name] or {}
            logger = logging.getLogger(name)
            logger.setLevel(self._get_log_level(settings.get('level', default_level)))
            logger.propagate = settings.get('propagate', True)
            self.loggers[name] = logger
            self.root_logger.debug(f"Logger '{name}' set to {logging.getLevelName(logger.level)}")

    def _get_log_level(self, level_name: Union[str, int]) -> int:
        """
        Convert a level name (or number) to its numeric value.

        Returns:
            Numeric log level, INFO for unknown names
        """
        if isinstance(level_name, int):
            return level_name
        level = logging.getLevelName(str(level_name).upper())
        return level if isinstance(level, int) else logging.INFO


# Singleton instance
log_manager = LogManager()


def initialize_logging(config: Optional[Dict[str, Any]] = None, force: bool = False) -> LogManager:
    """
    Initialize logging from a config section, or from defaults when omitted.

    Returns:
        The shared LogManager
    """
    log_manager.initialize(config if config is not None else DEFAULT_LOGGING_CONFIG, force=force)
    return log_manager
