"""
Plugins composing the behavior of document types.
"""

from docmachine.plugins.base import Composition, ComposedOperation, Plugin, ReloadAware
from docmachine.plugins.hooks import class_method, instance_method, instance_property
from docmachine.plugins.callbacks import Callbacks
from docmachine.plugins.clone import Clone
from docmachine.plugins.descendants import Descendants
from docmachine.plugins.dirty import Dirty
from docmachine.plugins.equality import Equality
from docmachine.plugins.inspection import Inspect
from docmachine.plugins.keys import Keys
from docmachine.plugins.lifecycle import Lifecycle
from docmachine.plugins.logger import Logger
from docmachine.plugins.persistence import Persistence
from docmachine.plugins.query_logger import QueryLogger
from docmachine.plugins.querying import Querying
from docmachine.plugins.validations import Errors, Validations

# Installed in this order on every document type. The query logger wraps
# the finders, so it comes last.
DEFAULT_PLUGINS = (
    Keys,
    Persistence,
    Lifecycle,
    Dirty,
    Equality,
    Inspect,
    Clone,
    Descendants,
    Logger,
    Querying,
    Validations,
    Callbacks,
    QueryLogger,
)

__all__ = [
    "DEFAULT_PLUGINS",
    "Composition",
    "ComposedOperation",
    "Plugin",
    "ReloadAware",
    "class_method",
    "instance_method",
    "instance_property",
    "Callbacks",
    "Clone",
    "Descendants",
    "Dirty",
    "Equality",
    "Errors",
    "Inspect",
    "Keys",
    "Lifecycle",
    "Logger",
    "Persistence",
    "QueryLogger",
    "Querying",
    "Validations",
]
