"""
Logger plugin: per-type query logger.
"""

import logging
from typing import Any, Optional, Union

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import class_method


def resolve_logger(logger: Union[logging.Logger, str, None]) -> Optional[logging.Logger]:
    """Accept a Logger, a logger name, or None."""
    if isinstance(logger, str):
        return logging.getLogger(logger)
    return logger


class Logger(Plugin):
    """
    Query logger binding.

    Document types log nothing unless a logger is set, either with
    ``logger=`` in the class definition or with set_logger(). Subclasses
    share their parent's logger unless they set their own.
    """

    name = "logger"

    @staticmethod
    def configure(model: Any) -> None:
        if "logger" in vars(model):
            model.logger = resolve_logger(vars(model)["logger"])

    @class_method
    def set_logger(cls, logger: Union[logging.Logger, str, None]) -> None:
        cls.logger = resolve_logger(logger)
