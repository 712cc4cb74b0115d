"""
Configuration manager implementation with validation and hot-reload support.
"""

import json
from pathlib import Path
from typing import Dict, Any, Optional, Callable
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler
import threading
import time

from ddd_kernel.domain.exceptions import ConfigurationError
from ddd_kernel.domain.interfaces.base import ILogger
from ddd_kernel.domain.models.configuration import KernelConfiguration


class ConfigurationFileHandler(FileSystemEventHandler):
    """File system event handler for configuration hot-reload."""

    def __init__(self, config_manager: 'ConfigurationManager', debounce_seconds: float = 1.0):
        self.config_manager = config_manager
        self.last_modified: Optional[float] = None
        self.debounce_seconds = debounce_seconds

    def on_modified(self, event):
        if event.is_directory:
            return

        if Path(event.src_path).resolve() != self.config_manager.config_file_path.resolve():
            return

        current_time = time.monotonic()
        if self.last_modified is not None and current_time - self.last_modified < self.debounce_seconds:
            return
        self.last_modified = current_time

        self.config_manager.reload()


class ConfigurationManager:
    """JSON-file backed kernel configuration with validation and hot reload."""

    def __init__(self, config_file_path: str, logger: ILogger):
        self.config_file_path = Path(config_file_path)
        self.logger = logger
        self._config_data: Dict[str, Any] = {}
        self._kernel_config: Optional[KernelConfiguration] = None
        self._observers: list = []
        self._change_callbacks: list[Callable[[Dict[str, Any]], None]] = []
        self._lock = threading.RLock()

        self._load_configuration()

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key."""
        with self._lock:
            return self._config_data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value; rejected values leave the configuration unchanged."""
        with self._lock:
            candidate = {**self._config_data, key: value}
            self._kernel_config = self._build(candidate)
            self._config_data = candidate
            data = self._config_data.copy()

        self._notify(data)

    def get_all(self) -> Dict[str, Any]:
        """Get all configuration data."""
        with self._lock:
            return self._config_data.copy()

    def validate(self) -> bool:
        """Validate current configuration."""
        try:
            with self._lock:
                KernelConfiguration.from_dict(self._config_data)
            return True
        except (TypeError, ValueError) as e:
            self.logger.error(f"Configuration validation failed: {e}", component="configuration")
            return False

    def reload(self) -> bool:
        """Reload configuration from file; keep the current one if the file is invalid."""
        try:
            with self._lock:
                with open(self.config_file_path, 'r', encoding='utf-8') as f:
                    new_config = json.load(f)

                if not isinstance(new_config, dict):
                    raise ConfigurationError("Configuration file must contain a JSON object")

                self._kernel_config = self._build(new_config)
                self._config_data = new_config
                data = self._config_data.copy()

        except json.JSONDecodeError as e:
            self.logger.error(f"Invalid JSON in configuration file: {e}", component="configuration")
            return False
        except (OSError, ConfigurationError) as e:
            self.logger.error(f"Failed to reload configuration: {e}", component="configuration")
            return False

        self.logger.info(f"Configuration reloaded from {self.config_file_path}", component="configuration")
        self._notify(data)
        return True

    def get_kernel_config(self) -> KernelConfiguration:
        """Get typed kernel configuration object."""
        with self._lock:
            if self._kernel_config is None:
                self._kernel_config = self._build(self._config_data)
            return self._kernel_config

    def start_hot_reload(self) -> None:
        """Start watching configuration file for changes."""
        if not self.config_file_path.exists():
            self.logger.warning(
                f"Configuration file {self.config_file_path} does not exist",
                component="configuration"
            )
            return

        event_handler = ConfigurationFileHandler(self)
        observer = Observer()
        observer.schedule(event_handler, str(self.config_file_path.parent), recursive=False)
        observer.start()
        self._observers.append(observer)

        self.logger.info(
            f"Started hot-reload for configuration file: {self.config_file_path}",
            component="configuration"
        )

    def stop_hot_reload(self) -> None:
        """Stop watching configuration file for changes."""
        if not self._observers:
            return
        for observer in self._observers:
            observer.stop()
            observer.join()
        self._observers.clear()
        self.logger.info("Stopped configuration hot-reload", component="configuration")

    def add_change_callback(self, callback: Callable[[Dict[str, Any]], None]) -> None:
        """Add callback to be called when configuration changes."""
        self._change_callbacks.append(callback)

    def _load_configuration(self) -> None:
        if self.config_file_path.exists():
            if not self.reload():
                raise ConfigurationError(
                    f"Invalid configuration file: {self.config_file_path}",
                    context={'path': str(self.config_file_path)}
                )
        else:
            self.logger.info(
                f"Configuration file {self.config_file_path} not found, using defaults",
                component="configuration"
            )
            self._config_data = KernelConfiguration().to_dict()
            self._kernel_config = self._build(self._config_data)
            self._save_configuration()

    @staticmethod
    def _build(config_data: Dict[str, Any]) -> KernelConfiguration:
        try:
            return KernelConfiguration.from_dict(config_data)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    def _notify(self, config_data: Dict[str, Any]) -> None:
        for callback in list(self._change_callbacks):
            try:
                callback(config_data)
            except Exception as e:
                self.logger.error(f"Configuration change callback failed: {e}", component="configuration")

    def _save_configuration(self) -> None:
        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)

            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(self._config_data, f, indent=4)

            self.logger.info(f"Configuration saved to {self.config_file_path}", component="configuration")

        except OSError as e:
            self.logger.error(f"Failed to save configuration: {e}", component="configuration")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop_hot_reload()
