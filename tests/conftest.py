"""
Pytest configuration and shared fixtures.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from unittest.mock import Mock

from ddd_kernel.domain.interfaces.base import ILogger, IErrorHandler
from ddd_kernel.domain.services.event_dispatcher import EventDispatcher, DispatchPolicy


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def mock_logger():
    """Create a mock logger for testing."""
    logger = Mock(spec=ILogger)
    logger.debug = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    logger.critical = Mock()
    return logger


@pytest.fixture
def mock_error_handler():
    """Create a mock error handler for testing."""
    error_handler = Mock(spec=IErrorHandler)
    error_handler.handle_error = Mock(return_value="Error handled")
    error_handler.log_error = Mock()
    error_handler.create_user_message = Mock(return_value="User friendly error")
    return error_handler


@pytest.fixture
def dispatcher(mock_logger):
    """Create a fail-fast dispatcher without an error handler."""
    return EventDispatcher(mock_logger)


@pytest.fixture
def continue_dispatcher(mock_logger, mock_error_handler):
    """Create a dispatcher that isolates handler failures."""
    return EventDispatcher(mock_logger, error_handler=mock_error_handler, policy=DispatchPolicy.CONTINUE)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove configuration environment overrides."""
    monkeypatch.delenv('DDD_KERNEL_DISPATCH_POLICY', raising=False)
    monkeypatch.delenv('DDD_KERNEL_LOG_LEVEL', raising=False)


@pytest.fixture
def sample_config_dict():
    """Create a sample configuration dictionary for testing."""
    return {
        'dispatch_policy': 'continue',
        'log_level': 'DEBUG',
        'log_dir': 'logs',
        'log_to_file': False,
        'component_name': 'orders',
    }
