"""Long-running operation polling for update-from-git.

Polls an operation at the interval the server asks for until it reaches a
terminal status. There is no backoff, attempt limit or cancellation: the
loop ends on a terminal status or when the process is stopped.
"""

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union

from .config import DEFAULT_POLL_INTERVAL
from .exceptions import ConfigurationError, OperationFailedError
from .models import OperationHandle, OperationState

if TYPE_CHECKING:
    from .api_clients.operations_client import OperationsAPIClient

logger = logging.getLogger(__name__)

RetryAfterValue = Union[None, str, int, Sequence[Any]]
StatusCallback = Callable[[OperationState, int], None]


def parse_retry_after(
    value: RetryAfterValue, fallback: int = DEFAULT_POLL_INTERVAL
) -> int:
    """Parse a Retry-After header value into whole seconds.

    Args:
        value: Header value; None when absent, a list when multi-valued
        fallback: Seconds returned when the value is absent or unparsable

    Returns:
        Seconds to wait before the next poll
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return fallback
    if isinstance(value, int):
        return value if value >= 0 else fallback

    text = str(value).split(",", 1)[0].strip()
    if not text:
        return fallback
    try:
        seconds = int(text)
    except ValueError:
        logger.warning(f"Ignoring unparsable Retry-After value {value!r}")
        return fallback
    return seconds if seconds >= 0 else fallback


@dataclass
class PollingConfig:
    """Configuration for operation polling."""

    fallback_interval: int = DEFAULT_POLL_INTERVAL

    def __post_init__(self):
        if self.fallback_interval < 0:
            raise ConfigurationError(
                "fallback_interval must be non-negative",
                f"Got: {self.fallback_interval}",
            )


class OperationPoller:
    """Poll a long-running operation until it is no longer pending."""

    def __init__(
        self,
        operations_client: "OperationsAPIClient",
        config: Optional[PollingConfig] = None,
        sleep: Optional[Callable[[float], None]] = None,
        status_callback: Optional[StatusCallback] = None,
    ):
        """Initialize poller.

        Args:
            operations_client: Client used to fetch operation state
            config: Polling configuration (uses defaults if None)
            sleep: Blocking sleep function (time.sleep if None)
            status_callback: Called with (state, poll_count) after every fetch
        """
        self.operations_client = operations_client
        self.config = config or PollingConfig()
        self.sleep = sleep or time.sleep
        self.status_callback = status_callback

    def wait(self, handle: OperationHandle) -> OperationState:
        """Poll until the operation reaches a terminal status.

        Args:
            handle: Operation handle returned when the request was accepted

        Returns:
            Final operation state (Succeeded or any non-pending status
            other than Failed)

        Raises:
            OperationFailedError: If the operation reports Failed
            HttpError: If a status request fails
        """
        if not handle.operation_id:
            raise ValueError("operation id is required before polling")

        interval = handle.retry_after_seconds
        polls = 0

        while True:
            state, retry_after = self.operations_client.get_operation_state(
                handle.operation_id
            )
            polls += 1
            logger.debug(
                f"Operation {handle.operation_id} poll {polls}: {state.status}"
            )
            if self.status_callback:
                self.status_callback(state, polls)

            if state.is_failed:
                raise OperationFailedError(handle.operation_id, state.error)
            if not state.is_pending:
                logger.info(
                    f"Operation {handle.operation_id} finished with status "
                    f"{state.status} after {polls} polls"
                )
                return state

            if retry_after:
                interval = parse_retry_after(retry_after, interval)
            self.sleep(interval)
