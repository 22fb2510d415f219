"""
Query logger plugin: times finders and logs them at DEBUG.

Installed last, it wraps find_one() and find_many(). Every call is timed
and added to the type's ``query_runtime`` (milliseconds), whether or not a
logger is set. A line is only logged when the type's logger is enabled for
DEBUG.
"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method
from docmachine.query.compiler import compile_query


class QueryLogger(Plugin):
    """
    Query timing and logging.

    Example:
        >>> User.set_logger("myapp.queries")
        >>> logging.getLogger("myapp.queries").setLevel(logging.DEBUG)
        >>> User.all(order="name", limit=10)
        # DEBUG myapp.queries: find_many (0.2ms)  {'sort': [('name', 1)], 'limit': 10}
        >>> User.query_runtime
        0.2
    """

    name = "query_logger"
    requires = ("querying", "logger")

    @staticmethod
    def configure(model: Any) -> None:
        model.query_runtime = 0.0
        model._runtime_lock = threading.Lock()

    @class_method(chain=True)
    def find_one(cls, call_next, options: Any = None, **kwargs: Any) -> Any:
        modifiers = compile_query(options, **kwargs).modifiers
        return cls.log("find_one", modifiers, lambda: call_next(options, **kwargs))

    @class_method(chain=True)
    def find_many(cls, call_next, options: Any = None, **kwargs: Any) -> Any:
        modifiers = compile_query(options, **kwargs).modifiers
        return cls.log("find_many", modifiers, lambda: call_next(options, **kwargs))

    @class_method
    def log(cls, name: Optional[str], query: Any, func: Optional[Callable[[], Any]] = None) -> Any:
        """
        Time ``func`` and log it with ``query``.

        Exceptions from ``func`` propagate and are not added to the runtime.

        Args:
            name: Label of the operation
            query: What to show after the label (usually the modifiers)
            func: Operation to run; without it only the label is logged

        Returns:
            Whatever ``func`` returns
        """
        if func is None:
            cls.log_info(name, query, 0)
            return None

        start = time.perf_counter()
        result = func()
        elapsed = (time.perf_counter() - start) * 1000  # Convert to ms

        with cls._runtime_lock:
            cls.query_runtime += elapsed
        cls.log_info(name, query, elapsed)
        return result

    @class_method
    def log_info(cls, name: Optional[str], query: Any, ms: float) -> None:
        logger = cls.logger
        if logger is not None and logger.isEnabledFor(logging.DEBUG):
            logger.debug(cls.format_log_entry(f"{name or 'query'} ({ms:.1f}ms)", query))

    @class_method
    def format_log_entry(cls, message: str, dump: Any = None) -> str:
        if dump is None:
            return message
        return f"{message}  {dump if isinstance(dump, str) else repr(dump)}"

    @class_method
    def reset_runtime(cls) -> float:
        """Zero ``query_runtime``, returning the previous total."""
        with cls._runtime_lock:
            runtime, cls.query_runtime = cls.query_runtime, 0.0
        return runtime
