"""
Run the stippling engine in a separate process.

The worker shares no state with the caller: it receives one ``InitMessage``
over a queue and answers over another queue with progress messages and one
terminal message. Cancelling means terminating the process; anything the
caller has not read from the queue at that point is discarded.
"""

import asyncio
import multiprocessing
import queue
import time
from typing import AsyncIterator, Iterator, Optional

import structlog

from ..config import settings
from ..log_config import configure_logging
from .density_field import DensityField
from .engine import MessageCallback, StipplingEngine
from .messages import DoneMessage, FailedMessage, InitMessage, StippleParameters, WorkerMessage

logger = structlog.get_logger()


class StippleWorkerError(RuntimeError):
    """The worker failed or exited without a terminal message."""


def _worker_main(inbound, outbound, log_level: str, log_format: str) -> None:
    """Entry point of the worker process."""
    configure_logging(log_level, log_format)

    init: InitMessage = inbound.get()
    logger.info("Worker received init message",
                width=init.density_field.width, height=init.density_field.height,
                max_iterations=init.max_iterations)

    try:
        engine = StipplingEngine(init.density_field, init.parameters())
        for message in engine.run():
            outbound.put(message)
    except Exception as e:
        logger.exception("Stippling worker failed")
        outbound.put(FailedMessage(error=f"{type(e).__name__}: {e}"))


class StippleWorker:
    """
    Handle on one stippling process.

    Usage:
        with StippleWorker() as worker:
            worker.start(InitMessage(density_field=field, max_iterations=50))
            for message in worker.messages():
                ...
    """

    def __init__(self, start_method: Optional[str] = None,
                 poll_interval: Optional[float] = None):
        self._context = multiprocessing.get_context(start_method or settings.worker_start_method)
        self.poll_interval = poll_interval or settings.worker_poll_interval
        self._inbound = self._context.Queue()
        self._outbound = self._context.Queue()
        self._process = None
        self._finished = False

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.is_alive()

    @property
    def finished(self) -> bool:
        return self._finished

    def start(self, init: InitMessage) -> None:
        """Spawn the process and send it the init message."""
        if self._process is not None:
            raise RuntimeError("Worker has already been started")

        self._process = self._context.Process(
            target=_worker_main,
            args=(self._inbound, self._outbound, settings.log_level, settings.log_format),
            daemon=True,
        )
        self._process.start()
        self._inbound.put(init)

        logger.info("Stippling worker started", pid=self._process.pid)

    def _next_message(self, deadline: Optional[float]) -> WorkerMessage:
        while True:
            try:
                return self._outbound.get(timeout=self.poll_interval)
            except queue.Empty:
                pass

            if not self._process.is_alive():
                # The last messages may still be in flight when the process exits
                try:
                    return self._outbound.get(timeout=self.poll_interval)
                except queue.Empty:
                    raise StippleWorkerError(
                        f"Worker exited with code {self._process.exitcode} before finishing"
                    ) from None

            if deadline is not None and time.monotonic() > deadline:
                raise TimeoutError("Timed out waiting for the stippling worker")

    def messages(self, timeout: Optional[float] = None) -> Iterator[WorkerMessage]:
        """
        Yield messages in arrival order until the terminal one.

        Args:
            timeout: Overall wall-clock limit in seconds

        Raises:
            StippleWorkerError: If the run failed or the process died
            TimeoutError: If ``timeout`` elapsed first
        """
        if self._process is None:
            raise RuntimeError("Worker has not been started")

        deadline = time.monotonic() + timeout if timeout is not None else None
        while not self._finished:
            message = self._next_message(deadline)

            if isinstance(message, FailedMessage):
                self._finished = True
                self._process.join()
                raise StippleWorkerError(message.error)

            if message.done:
                self._finished = True
                self._process.join()

            yield message

    async def stream(self) -> AsyncIterator[WorkerMessage]:
        """Async version of ``messages()``; waits in a thread."""
        iterator = self.messages()
        while True:
            message = await asyncio.to_thread(next, iterator, None)
            if message is None:
                return
            yield message

    def terminate(self) -> None:
        """Kill the worker immediately. Safe to call more than once."""
        if self._process is not None and self._process.is_alive():
            logger.info("Terminating stippling worker", pid=self._process.pid)
            self._process.terminate()
            self._process.join()
        self._finished = True

    def __enter__(self) -> "StippleWorker":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()


def run_in_worker(field: DensityField,
                  parameters: Optional[StippleParameters] = None,
                  on_message: Optional[MessageCallback] = None,
                  timeout: Optional[float] = None) -> DoneMessage:
    """
    Stipple ``field`` in a worker process and return the terminal message.

    Progress messages are forwarded to ``on_message`` as they arrive.
    """
    if parameters is None:
        parameters = StippleParameters.from_settings()
    init = InitMessage(density_field=field, **parameters.model_dump())

    final = None
    with StippleWorker() as worker:
        worker.start(init)
        for message in worker.messages(timeout=timeout):
            if on_message is not None:
                on_message(message)
            final = message
    return final
