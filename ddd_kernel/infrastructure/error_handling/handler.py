"""
Error handler implementation with structured logging and fallback hooks.
"""

import traceback
from typing import Dict, Any, Callable
from datetime import datetime

from ddd_kernel.domain.interfaces.base import ILogger
from ddd_kernel.domain.exceptions import (
    DomainKernelError, ConfigurationError, ConstructionError, EventTypeError,
    EventDispatchError, AsyncHandlerError
)

FallbackHandler = Callable[[BaseException, Dict[str, Any]], None]


class ErrorHandler:
    """Logs errors with their structured context and produces user-facing messages.

    Fallback handlers are looked up by exception type, most specific first,
    and run after the error has been logged. A failing fallback is logged and
    never propagated.
    """

    def __init__(self, logger: ILogger):
        self.logger = logger
        self._fallback_handlers: Dict[type, FallbackHandler] = {}
        self._setup_default_handlers()

    def _setup_default_handlers(self) -> None:
        self._fallback_handlers.update({
            ConfigurationError: self._handle_configuration_error,
            EventDispatchError: self._handle_event_dispatch_error,
        })

    def handle_error(self, error: BaseException, context: Dict[str, Any]) -> str:
        """Handle error with logging and return user-friendly message."""
        self.log_error(error, context)
        self._execute_fallback(error, context)
        return self.create_user_message(error)

    def log_error(self, error: BaseException, context: Dict[str, Any]) -> None:
        """Log error with structured context."""
        error_context = {
            'error_type': type(error).__name__,
            'error_message': str(error),
            'traceback': ''.join(traceback.format_exception(type(error), error, error.__traceback__)),
            'timestamp': datetime.now().isoformat(),
            **context
        }

        if isinstance(error, DomainKernelError):
            error_context.update(error.context)

            if isinstance(error, ConstructionError):
                error_context.update({
                    'field': error.field,
                    'value': repr(error.value) if error.value is not None else None
                })
            elif isinstance(error, EventTypeError):
                error_context['event_type'] = error.event_type
            elif isinstance(error, AsyncHandlerError):
                error_context['handler'] = error.handler_name
            elif isinstance(error, EventDispatchError):
                error_context['failed_handlers'] = [f.handler_name for f in error.failures]

        if isinstance(error, EventTypeError):
            self.logger.critical("Event routing error occurred", **error_context)
        elif isinstance(error, (ConfigurationError, ConstructionError)):
            self.logger.warning("Configuration/construction error occurred", **error_context)
        elif context.get('handler'):
            self.logger.error("Event handler failed", **error_context)
        else:
            self.logger.error("Unexpected error occurred", **error_context)

    def create_user_message(self, error: BaseException) -> str:
        """Create user-friendly error message."""
        if isinstance(error, ConfigurationError):
            return f"Configuration error: {error.message}. Check the configuration file."

        elif isinstance(error, ConstructionError):
            message = f"Invalid attributes: {error.message}"
            if error.field:
                message += f" (field: {error.field})"
            return message

        elif isinstance(error, EventTypeError):
            return f"Event routing error: {error.message}"

        elif isinstance(error, AsyncHandlerError):
            return f"Asynchronous handler in synchronous dispatch: {error.message}"

        elif isinstance(error, EventDispatchError):
            return f"Event dispatch failed: {error.message}"

        elif isinstance(error, DomainKernelError):
            return f"Domain error: {error.message}"

        else:
            return f"Unexpected error: {error}"

    def _execute_fallback(self, error: BaseException, context: Dict[str, Any]) -> None:
        """Run the fallback registered for the most specific matching type."""
        for exc_type in type(error).__mro__:
            handler = self._fallback_handlers.get(exc_type)
            if handler is None:
                continue
            try:
                handler(error, context)
            except Exception as fallback_error:
                self.logger.error(
                    "Fallback handler failed",
                    error_type=type(fallback_error).__name__,
                    error_message=str(fallback_error),
                    original_error=str(error)
                )
            break

    def _handle_configuration_error(self, error: ConfigurationError, context: Dict[str, Any]) -> None:
        self.logger.info("Keeping the last valid configuration", **context)

    def _handle_event_dispatch_error(self, error: EventDispatchError, context: Dict[str, Any]) -> None:
        for failure in error.failures:
            self.logger.info(
                f"Handler {failure.handler_name} failed",
                event_type=failure.event_type,
                error_type=type(failure.error).__name__,
            )

    def add_fallback_handler(self, error_type: type, handler: FallbackHandler) -> None:
        """Add custom fallback handler for specific error type."""
        self._fallback_handlers[error_type] = handler

    def remove_fallback_handler(self, error_type: type) -> None:
        """Remove fallback handler for specific error type."""
        self._fallback_handlers.pop(error_type, None)
