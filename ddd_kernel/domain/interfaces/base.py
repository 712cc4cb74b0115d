"""
Base interfaces and abstract classes for the domain layer.
"""

from abc import ABC
from typing import Any, Callable, Dict, Protocol


class ILogger(Protocol):
    """Logger interface for dependency injection."""

    def debug(self, message: str, **kwargs: Any) -> None: ...
    def info(self, message: str, **kwargs: Any) -> None: ...
    def warning(self, message: str, **kwargs: Any) -> None: ...
    def error(self, message: str, **kwargs: Any) -> None: ...
    def critical(self, message: str, **kwargs: Any) -> None: ...


class IConfigurationManager(Protocol):
    """Configuration management interface."""

    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def validate(self) -> bool: ...
    def reload(self) -> bool: ...
    def get_all(self) -> Dict[str, Any]: ...
    def add_change_callback(self, callback: Callable[[Dict[str, Any]], None]) -> None: ...


class IErrorHandler(Protocol):
    """Error handling interface."""

    def handle_error(self, error: BaseException, context: Dict[str, Any]) -> str: ...
    def log_error(self, error: BaseException, context: Dict[str, Any]) -> None: ...
    def create_user_message(self, error: BaseException) -> str: ...


class DomainService(ABC):
    """Base class for domain services."""

    def __init__(self, logger: ILogger):
        self.logger = logger
