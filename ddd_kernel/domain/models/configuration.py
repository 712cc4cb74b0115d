"""
Configuration models and validation.
"""

from dataclasses import dataclass, fields
from typing import Dict, Any
import os

from ddd_kernel.domain.services.event_dispatcher import DispatchPolicy

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class KernelConfiguration:
    """Configuration for the event dispatcher and its logging."""

    # Dispatch configuration
    dispatch_policy: str = DispatchPolicy.FAIL_FAST.value

    # Logging configuration
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_to_file: bool = False
    component_name: str = "event_dispatcher"

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_dispatch()
        self._validate_logging()

    def _validate_dispatch(self) -> None:
        DispatchPolicy.from_string(self.dispatch_policy)

    def _validate_logging(self) -> None:
        if not isinstance(self.log_level, str) or self.log_level.upper() not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {list(_LOG_LEVELS)}")

        if not isinstance(self.log_to_file, bool):
            raise ValueError("log_to_file must be a boolean")

        if self.log_to_file and (not self.log_dir or not isinstance(self.log_dir, str)):
            raise ValueError("log_dir must be a non-empty string when log_to_file is enabled")

        if not self.component_name or not isinstance(self.component_name, str):
            raise ValueError("component_name must be a non-empty string")

    @property
    def policy(self) -> DispatchPolicy:
        return DispatchPolicy.from_string(self.dispatch_policy)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'KernelConfiguration':
        """Create configuration from dictionary with environment variable support."""
        config_dict = dict(config_dict)
        env_overrides = {
            'dispatch_policy': os.getenv('DDD_KERNEL_DISPATCH_POLICY'),
            'log_level': os.getenv('DDD_KERNEL_LOG_LEVEL'),
        }

        for key, env_value in env_overrides.items():
            if env_value is not None:
                config_dict[key] = env_value

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(config_dict) - known)
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(unknown)}")

        return cls(**config_dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            'dispatch_policy': self.dispatch_policy,
            'log_level': self.log_level,
            'log_dir': self.log_dir,
            'log_to_file': self.log_to_file,
            'component_name': self.component_name,
        }
