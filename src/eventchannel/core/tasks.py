"""
AsyncTaskQueue - ordered pipeline of named async steps.

Steps may be registered in any order; the queue only runs once every
declared step exists. Each step receives the previous step's result.

Usage:
    queue = AsyncTaskQueue(["load", "parse", "store"], auto_start=False)
    queue.on("parse", parse)
    queue.on("load", load_async)
    queue.on("store", store)
    result = await queue.start(path)
"""
import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional, Sequence

from loguru import logger

from .errors import InvalidArgumentError, TaskCancelledError, TaskFailedError
from .matching import validate_callback


class AsyncTaskQueue:
    def __init__(self, types: Sequence[str], auto_start: bool = True):
        if not types:
            raise InvalidArgumentError("At least one task type is required")
        self._types: List[str] = list(types)
        self._auto_start = auto_start
        self._tasks: Dict[str, Callable] = {}
        self._loaded = False
        self._running = False
        self._cancel_requested = False
        self._load_callback: Optional[Callable[[], Any]] = None
        self._auto_task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    def on(self, task_type: str, callback: Callable) -> None:
        """
        Register the step for task_type.

        Raises:
            InvalidArgumentError: Unknown type or non-callable step
        """
        if task_type not in self._types:
            raise InvalidArgumentError(f"Unregistered task type: {task_type}")
        validate_callback(callback)
        if task_type in self._tasks:
            logger.debug(f"Task step '{task_type}' already registered, ignoring")
            return
        self._tasks[task_type] = callback

        if len(self._tasks) == len(self._types):
            self._loaded = True
            logger.debug(f"Task queue loaded: {self._types}")
            if self._auto_start:
                self._schedule_start()
            if self._load_callback is not None:
                self._load_callback()

    def on_load(self, callback: Callable[[], Any]) -> None:
        """Set the callback fired once every step is registered."""
        self._load_callback = validate_callback(callback)

    async def start(self, value: Any = None) -> Any:
        """
        Run every step in order.

        Returns:
            The last step's result, or None when not loaded or already running

        Raises:
            TaskCancelledError: cancel() was called during the run
            TaskFailedError: A step raised
        """
        if self._running or not self._loaded:
            return None
        self._running = True
        self._cancel_requested = False
        try:
            for task_type in self._types:
                if self._cancel_requested:
                    raise TaskCancelledError("Task canceled")
                try:
                    value = self._tasks[task_type](value)
                    if inspect.isawaitable(value):
                        value = await value
                except Exception as e:
                    logger.error(f"Task step '{task_type}' failed: {e}")
                    raise TaskFailedError(task_type, e) from e
            return value
        finally:
            self._running = False
            self._cancel_requested = False

    def cancel(self) -> None:
        """Stop the current run before its next step."""
        if self._running:
            self._cancel_requested = True

    def _schedule_start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("Task queue loaded outside an event loop; call start() manually")
            return
        self._auto_task = loop.create_task(self._run_auto())

    async def _run_auto(self) -> None:
        try:
            await self.start()
        except (TaskCancelledError, TaskFailedError) as e:
            logger.warning(f"Auto-started task queue stopped: {e}")
