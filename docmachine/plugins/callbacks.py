"""
Callbacks plugin: lifecycle callbacks around validation, save and destroy.

Document methods marked with @before_save, @after_create and friends run
around the matching lifecycle step. A before-callback returning False
halts the step: save() then returns False and destroy() does nothing.
"""

import logging
from typing import Any

from docmachine.plugins.base import Plugin
from docmachine.plugins.hooks import CALLBACK_KINDS, instance_method, marked_functions

logger = logging.getLogger(__name__)


class Callbacks(Plugin):
    """
    Example:
        >>> class User(Document):
        ...     email: str
        ...
        ...     @before_save
        ...     def normalize_email(self):
        ...         self.email = self.email.lower()
    """

    name = "callbacks"
    requires = ("lifecycle", "validations")

    @staticmethod
    def configure(model: Any) -> None:
        callbacks: dict[str, list[Any]] = {kind: [] for kind in CALLBACK_KINDS}
        for func in marked_functions(model, "_callback_kinds"):
            for kind in func._callback_kinds:
                callbacks[kind].append(func)
        model._callbacks = callbacks

    @instance_method
    def run_callbacks(self, kind: str) -> bool:
        """
        Run the callbacks registered for ``kind``, in definition order.

        Returns:
            False if a before-callback halted the chain, True otherwise
        """
        for callback in type(self)._callbacks[kind]:
            result = callback(self)
            if result is False and kind.startswith("before_"):
                logger.debug(f"{type(self).__name__}.{callback.__name__} halted {kind}")
                return False
        return True

    @instance_method(chain=True)
    def valid(self, call_next) -> bool:
        if not self.run_callbacks("before_validation"):
            return False
        result = call_next()
        self.run_callbacks("after_validation")
        return result

    @instance_method(chain=True)
    def create_or_update(self, call_next) -> bool:
        if not self.run_callbacks("before_save"):
            return False
        result = call_next()
        if result:
            self.run_callbacks("after_save")
        return result

    @instance_method(chain=True)
    def create_record(self, call_next) -> bool:
        if not self.run_callbacks("before_create"):
            return False
        result = call_next()
        if result:
            self.run_callbacks("after_create")
        return result

    @instance_method(chain=True)
    def update_record(self, call_next) -> bool:
        if not self.run_callbacks("before_update"):
            return False
        result = call_next()
        if result:
            self.run_callbacks("after_update")
        return result

    @instance_method(chain=True)
    def destroy(self, call_next) -> bool:
        if not self.run_callbacks("before_destroy"):
            return False
        result = call_next()
        self.run_callbacks("after_destroy")
        return result
