"""Bounded-concurrency translation queue with per-task retry.

Every task moves through an explicit state machine::

    PENDING -> ACTIVE -> SUCCEEDED
                      -> RETRYING -> PENDING -> ACTIVE ...
                      -> FAILED

At most ``concurrency`` tasks are ACTIVE at any time. Callers get one
future per task. Everything runs on the caller's event loop; provider calls
are the only suspension points.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from i18nxy.errors import BatchTranslationError, ProviderError
from i18nxy.providers.base import TranslationOptions, TranslationProvider, TranslationResult

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(eq=False)
class TranslationTask:
    """One unit of queued work.

    A task with ``texts`` set is a native provider batch; batches are
    attempted once and never retried.
    """
    text: str
    options: TranslationOptions | None
    future: asyncio.Future[Any]
    id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    retries: int = 0
    state: TaskState = TaskState.PENDING
    texts: list[str] | None = None


class TranslationQueue:
    """Feeds texts to a provider, ``concurrency`` at a time.

    Delays are in seconds. ``batch_delay`` is waited after a task finishes
    before the next pending task is started.
    """

    def __init__(
        self,
        provider: TranslationProvider,
        *,
        concurrency: int = 10,
        retry_times: int = 3,
        retry_delay: float = 0.0,
        batch_delay: float = 0.0,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.provider = provider
        self.concurrency = concurrency
        self.retry_times = retry_times
        self.retry_delay = retry_delay
        self.batch_delay = batch_delay
        self._pending: deque[TranslationTask] = deque()
        self._active = 0
        self._running: set[asyncio.Task[None]] = set()
        logger.debug(
            "Translation queue for %s (concurrency=%d, retries=%d)",
            provider.name, concurrency, retry_times,
        )

    # ── public API ──

    async def add_task(
        self, text: str, options: TranslationOptions | None = None,
    ) -> TranslationResult:
        """Queue one text and wait for its result.

        Raises:
            Exception: The provider's last error once retries are exhausted.
        """
        task = self._enqueue(text, options)
        return await task.future

    async def add_batch_tasks(
        self, texts: Iterable[str], options: TranslationOptions | None = None,
    ) -> list[TranslationResult]:
        """Translate *texts*, preferring the provider's native batch call.

        If the batch call fails, each text is queued as its own task.

        Raises:
            BatchTranslationError: If any text still failed after the fallback.
        """
        texts = list(texts)
        if not texts:
            return []

        batch = self._enqueue(texts[0], options, texts=texts)
        try:
            results = await batch.future
        except Exception as e:  # noqa: BLE001
            logger.warning("Batch of %d failed (%s), translating one by one", len(texts), e)
        else:
            if len(results) == len(texts):
                return results
            logger.warning(
                "Batch returned %d results for %d texts, translating one by one",
                len(results), len(texts),
            )

        outcomes = await asyncio.gather(
            *(self.add_task(text, options) for text in texts), return_exceptions=True,
        )
        results = []
        errors: list[tuple[str, BaseException]] = []
        for text, outcome in zip(texts, outcomes):
            if isinstance(outcome, BaseException):
                errors.append((text, outcome))
            else:
                results.append(outcome)
        if errors:
            raise BatchTranslationError(results, errors)
        return results

    @property
    def queue_length(self) -> int:
        return len(self._pending)

    @property
    def active_count(self) -> int:
        return self._active

    def clear_queue(self) -> int:
        """Drop every PENDING task, failing its future. Returns how many were dropped."""
        dropped = 0
        while self._pending:
            task = self._pending.popleft()
            task.state = TaskState.FAILED
            if not task.future.done():
                task.future.set_exception(
                    ProviderError("Task removed from queue", code="QUEUE_CLEARED")
                )
            dropped += 1
        logger.debug("Cleared %d queued tasks", dropped)
        return dropped

    # ── scheduling ──

    def _enqueue(
        self,
        text: str,
        options: TranslationOptions | None,
        texts: list[str] | None = None,
    ) -> TranslationTask:
        future = asyncio.get_running_loop().create_future()
        task = TranslationTask(text=text, options=options, future=future, texts=texts)
        self._pending.append(task)
        logger.debug("Queued task %s: %.20s", task.id, text)
        self._drain()
        return task

    def _drain(self) -> None:
        while self._pending and self._active < self.concurrency:
            task = self._pending.popleft()
            task.state = TaskState.ACTIVE
            self._active += 1
            runner = asyncio.ensure_future(self._run(task))
            # The loop only keeps weak references to tasks.
            self._running.add(runner)
            runner.add_done_callback(self._running.discard)

    def _requeue(self, task: TranslationTask) -> None:
        task.state = TaskState.PENDING
        self._pending.append(task)
        self._drain()

    async def _run(self, task: TranslationTask) -> None:
        try:
            if task.texts is not None:
                result: Any = await self.provider.batch_translate(task.texts, task.options)
            else:
                result = await self.provider.translate(task.text, task.options)
        except Exception as e:  # noqa: BLE001
            self._on_failure(task, e)
        else:
            task.state = TaskState.SUCCEEDED
            if not task.future.done():
                task.future.set_result(result)
        finally:
            self._active -= 1
            self._after_completion()

    def _on_failure(self, task: TranslationTask, error: Exception) -> None:
        if task.texts is None and task.retries < self.retry_times:
            task.retries += 1
            task.state = TaskState.RETRYING
            logger.debug(
                "Task %s failed (%s), retry %d/%d", task.id, error, task.retries, self.retry_times,
            )
            asyncio.get_running_loop().call_later(self.retry_delay, self._requeue, task)
            return

        task.state = TaskState.FAILED
        if task.texts is None:
            logger.error("Task %s failed after %d retries: %s", task.id, task.retries, error)
        if not task.future.done():
            task.future.set_exception(error)

    def _after_completion(self) -> None:
        if not self._pending:
            return
        if self.batch_delay > 0:
            asyncio.get_running_loop().call_later(self.batch_delay, self._drain)
        else:
            self._drain()
