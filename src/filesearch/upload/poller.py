"""Long-running operation poller.

Polls an import operation at a fixed interval until it reports
``done``, the attempt budget runs out, or a status request fails.
Waiting uses ``asyncio.sleep`` so many uploads can be polled from one
event loop without a thread per operation.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_result,
    stop_after_attempt,
    stop_after_delay,
    wait_fixed,
)

from filesearch.constants import DEFAULT_POLL_INTERVAL_SECONDS, DEFAULT_POLL_MAX_ATTEMPTS
from filesearch.exceptions import OperationTimeoutError, PollError, ValidationError
from filesearch.models import Operation

if TYPE_CHECKING:
    from filesearch.client import FileSearchClient

logger = logging.getLogger(__name__)


def _not_done(operation: Operation) -> bool:
    return not operation.done


def _log_pending(retry_state: RetryCallState) -> None:
    op = retry_state.outcome.result() if retry_state.outcome else None
    logger.debug(
        "Operation %s not done after attempt %d, waiting %.1fs",
        getattr(op, "name", "?"),
        retry_state.attempt_number,
        retry_state.next_action.sleep if retry_state.next_action else 0.0,
    )


class OperationPoller:
    """Poll :meth:`FileSearchClient.get_operation_status` until done.

    Usage::

        poller = OperationPoller(client)
        op = await poller.poll_until_done("fileSearchStores/abc/operations/xyz")
        if op.error:
            print(op.error)

    A terminal operation carrying an error is returned, not raised.
    There is no cancel: a caller that loses interest simply stops
    awaiting, and the remote operation carries on regardless.
    """

    def __init__(
        self,
        client: FileSearchClient,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_attempts: int = DEFAULT_POLL_MAX_ATTEMPTS,
        timeout: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
    ) -> None:
        self._client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self.timeout = timeout
        self._sleep = sleep

    async def poll_until_done(
        self,
        operation_name: str,
        interval: float | None = None,
        max_attempts: int | None = None,
        timeout: float | None = None,
    ) -> Operation:
        """Poll one operation to a terminal state.

        Args:
            operation_name: Operation resource name from an import.
            interval: Seconds between attempts (fixed, no backoff).
            max_attempts: Maximum number of status requests.
            timeout: Optional wall-clock ceiling in seconds, applied on
                top of the attempt bound.

        Returns:
            The first :class:`Operation` with ``done == True``. No wait
            follows the terminal attempt.

        Raises:
            PollError: A status request failed; it is not retried.
            OperationTimeoutError: The budget ran out before ``done``.
        """
        interval = self.interval if interval is None else interval
        max_attempts = self.max_attempts if max_attempts is None else max_attempts
        timeout = self.timeout if timeout is None else timeout
        if interval < 0:
            raise ValidationError(f"interval must be >= 0, got {interval}")
        if max_attempts < 1:
            raise ValidationError(f"max_attempts must be >= 1, got {max_attempts}")
        if not operation_name:
            raise ValidationError("operation name is required")

        stop = stop_after_attempt(max_attempts)
        if timeout is not None:
            stop = stop | stop_after_delay(timeout)

        kwargs: dict[str, Any] = {}
        if self._sleep is not None:
            kwargs["sleep"] = self._sleep

        attempts = 0

        async def _attempt() -> Operation:
            nonlocal attempts
            attempts += 1
            try:
                return await self._client.get_operation_status(operation_name)
            except Exception as exc:
                raise PollError(operation_name, attempts, exc) from exc

        retrying = AsyncRetrying(
            wait=wait_fixed(interval),
            stop=stop,
            retry=retry_if_result(_not_done),
            before_sleep=_log_pending,
            **kwargs,
        )
        try:
            operation = await retrying(_attempt)
        except RetryError:
            logger.warning(
                "Gave up polling %s after %d attempts; it may still be running",
                operation_name,
                attempts,
            )
            raise OperationTimeoutError(operation_name, attempts) from None

        if operation.error:
            logger.warning("Operation %s failed: %s", operation_name, operation.error)
        else:
            logger.info("Operation %s done after %d attempts", operation_name, attempts)
        return operation
