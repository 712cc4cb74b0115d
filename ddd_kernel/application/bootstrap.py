"""
Wiring helpers: build a dispatcher and publisher from configuration.
"""

from typing import Any, Dict, Optional

from ddd_kernel.application.services.event_publisher import AggregateEventPublisher
from ddd_kernel.domain.interfaces.base import ILogger, IConfigurationManager
from ddd_kernel.domain.models.configuration import KernelConfiguration
from ddd_kernel.domain.services.event_dispatcher import EventDispatcher
from ddd_kernel.infrastructure.error_handling.handler import ErrorHandler
from ddd_kernel.infrastructure.logging.logger import LoggerFactory


def create_event_dispatcher(
    config: Optional[KernelConfiguration] = None,
    logger: Optional[ILogger] = None,
) -> EventDispatcher:
    """Create a dispatcher with an error handler, both logging through ``logger``."""
    config = config or KernelConfiguration()
    if logger is None:
        logger = LoggerFactory.create_component_logger(config.component_name, config.to_dict())

    return EventDispatcher(
        logger=logger,
        error_handler=ErrorHandler(logger),
        policy=config.policy,
    )


def create_event_publisher(
    config: Optional[KernelConfiguration] = None,
    logger: Optional[ILogger] = None,
) -> AggregateEventPublisher:
    dispatcher = create_event_dispatcher(config, logger)
    return AggregateEventPublisher(dispatcher, dispatcher.logger)


def bind_to_configuration(dispatcher: EventDispatcher, config_manager: IConfigurationManager) -> None:
    """Apply the dispatch policy of every configuration change to ``dispatcher``."""

    def on_change(config_data: Dict[str, Any]) -> None:
        policy = KernelConfiguration.from_dict(config_data).policy
        if policy is not dispatcher.policy:
            dispatcher.logger.info(
                "Dispatch policy changed",
                component="event_dispatcher",
                old_policy=dispatcher.policy.value,
                new_policy=policy.value,
            )
            dispatcher.policy = policy

    config_manager.add_change_callback(on_change)
