"""
Plugin registry for docmachine.

A document type's behavior is the composition of an ordered list of
plugins. Each plugin contributes class-level operations, instance-level
operations and properties, and may register a configure hook (run once per
document type) and an initialize hook (run for every instance). When two
plugins define the same operation, a later definition marked ``chain=True``
receives ``call_next`` to invoke the earlier one, like the next handler in
a middleware stack.
"""

import logging
from dataclasses import dataclass
from types import MethodType
from typing import Any, Callable, ClassVar, Optional, TYPE_CHECKING

from docmachine.exceptions import PluginDependencyError
from docmachine.plugins.hooks import CLASS, INSTANCE, PROPERTY, Operation, get_operation

if TYPE_CHECKING:
    from docmachine.document import Document

logger = logging.getLogger(__name__)


class Plugin:
    """
    Base class for plugins.

    Plugins are namespaces, never instantiated. Operation functions are
    marked with class_method, instance_method or instance_property and are
    called with the document class or instance as their first argument.

    Attributes:
        name: Unique plugin name, used by ``requires``
        requires: Names of plugins that must be installed earlier

    Example:
        >>> class SoftDelete(Plugin):
        ...     name = "soft_delete"
        ...     requires = ("lifecycle",)
        ...
        ...     @instance_method(chain=True)
        ...     def destroy(self, call_next):
        ...         self.deleted = True
        ...         return self.save()
    """

    name: ClassVar[str] = ""
    requires: ClassVar[tuple[str, ...]] = ()

    @staticmethod
    def configure(model: type["Document"]) -> None:
        """Called once when the plugin is installed on a document type."""
        pass

    @staticmethod
    def initialize(instance: "Document") -> None:
        """Called every time an instance of the document type is built."""
        pass

    @classmethod
    def operations(cls) -> list[Operation]:
        """
        Operations contributed by this plugin, in definition order.

        Plugin subclasses inherit their parent's operations and may
        replace them by defining an operation of the same name.
        """
        found: dict[tuple[str, str], Operation] = {}
        for klass in reversed(cls.__mro__):
            if not (isinstance(klass, type) and issubclass(klass, Plugin)):
                continue
            for value in vars(klass).values():
                operation = get_operation(value)
                if operation is not None:
                    found[(operation.kind, operation.name)] = operation
        return list(found.values())


class ReloadAware:
    """
    Capability for plugins holding per-instance caches.

    Plugins that subclass ReloadAware implement ``reset(instance)``, which
    reload() calls after replacing the attribute map.
    """

    @staticmethod
    def reset(instance: "Document") -> None:
        raise NotImplementedError


@dataclass(frozen=True)
class Definition:
    """One plugin's definition of an operation."""

    plugin: type[Plugin]
    func: Callable[..., Any]
    chain: bool


def _invoke(definitions: list[Definition], index: int, target: Any, args: tuple, kwargs: dict) -> Any:
    definition = definitions[index]
    if definition.chain:
        def call_next(*next_args: Any, **next_kwargs: Any) -> Any:
            return _invoke(definitions, index - 1, target, next_args, next_kwargs)
        return definition.func(target, call_next, *args, **kwargs)
    return definition.func(target, *args, **kwargs)


class ComposedOperation:
    """
    Descriptor dispatching an operation name to its definition chains.

    The same name may have a class-level chain and an instance-level chain
    (``User.destroy(id)`` and ``user.destroy()``). Access through the class
    uses the class chain; access through an instance uses the instance
    chain, falling back to the class chain bound to the instance's type.
    """

    def __init__(self, name: str, class_chain: list[Definition], instance_chain: list[Definition], is_property: bool):
        self.name = name
        self.class_chain = class_chain
        self.instance_chain = instance_chain
        self.is_property = is_property

    def _call_class(self, model: type, *args: Any, **kwargs: Any) -> Any:
        return _invoke(self.class_chain, len(self.class_chain) - 1, model, args, kwargs)

    def _call_instance(self, instance: Any, *args: Any, **kwargs: Any) -> Any:
        return _invoke(self.instance_chain, len(self.instance_chain) - 1, instance, args, kwargs)

    def __get__(self, instance: Any, owner: type) -> Any:
        if instance is None:
            if self.class_chain:
                return MethodType(self._call_class, owner)
            if self.is_property:
                return self
            # Unbound instance operation, e.g. User.save(user)
            return self._call_instance
        if self.is_property:
            return self._call_instance(instance)
        if self.instance_chain:
            return MethodType(self._call_instance, instance)
        return MethodType(self._call_class, type(instance))

    def __set__(self, instance: Any, value: Any) -> None:
        raise AttributeError(f"can't set attribute '{self.name}'")

    def __repr__(self) -> str:
        plugins = [d.plugin.name for d in self.instance_chain + self.class_chain]
        return f"<ComposedOperation {self.name} from {plugins}>"


class Composition:
    """
    Ordered plugin list and composed operations of one document type.

    Example:
        >>> User.__composition__.plugin_names()
        ['keys', 'dirty', ..., 'query_logger']
    """

    def __init__(self, model: type["Document"]):
        self.model = model
        self.plugins: list[type[Plugin]] = []
        self.operations: dict[str, dict[str, list[Definition]]] = {
            CLASS: {},
            INSTANCE: {},
            PROPERTY: {},
        }
        self.initializers: list[Callable[[Any], None]] = []
        self.reload_hooks: list[Callable[[Any], None]] = []

    def plugin_names(self) -> list[str]:
        return [plugin.name for plugin in self.plugins]

    def operation_names(self) -> set[str]:
        names: set[str] = set()
        for table in self.operations.values():
            names.update(table)
        return names

    def has_operation(self, name: str, kind: Optional[str] = None) -> bool:
        kinds = [kind] if kind else list(self.operations)
        return any(name in self.operations[k] for k in kinds)

    def _check(self, plugin: type[Plugin]) -> None:
        """Validate a plugin against the current composition, before any change."""
        if not (isinstance(plugin, type) and issubclass(plugin, Plugin)):
            raise PluginDependencyError(f"{plugin!r} is not a Plugin subclass")
        if not plugin.name:
            raise PluginDependencyError(f"{plugin.__name__} must define a name")

        installed = self.plugin_names()
        if plugin.name in installed:
            raise PluginDependencyError(
                f"Plugin '{plugin.name}' is already installed on {self.model.__name__}"
            )
        for required in plugin.requires:
            if required not in installed:
                raise PluginDependencyError(
                    f"Plugin '{plugin.name}' requires '{required}' to be installed first on "
                    f"{self.model.__name__} (installed: {installed})"
                )

        keys = getattr(self.model, "keys", None)
        key_names = set(keys()) if callable(keys) else set()
        for operation in plugin.operations():
            table = self.operations[operation.kind]
            if operation.chain and not table.get(operation.name):
                raise PluginDependencyError(
                    f"Plugin '{plugin.name}' wraps {operation.kind} operation '{operation.name}' "
                    f"but no earlier plugin defines it"
                )
            if operation.kind == PROPERTY and self.operations[INSTANCE].get(operation.name):
                raise PluginDependencyError(
                    f"Plugin '{plugin.name}' defines property '{operation.name}' over an instance method"
                )
            if operation.kind == INSTANCE and self.operations[PROPERTY].get(operation.name):
                raise PluginDependencyError(
                    f"Plugin '{plugin.name}' defines method '{operation.name}' over a property"
                )
            if operation.name in key_names:
                raise PluginDependencyError(
                    f"Plugin '{plugin.name}' operation '{operation.name}' conflicts with a key "
                    f"of {self.model.__name__}"
                )

        if issubclass(plugin, ReloadAware) and plugin.reset is ReloadAware.reset:
            raise PluginDependencyError(f"Plugin '{plugin.name}' is ReloadAware but does not implement reset()")

    def install(self, plugin: type[Plugin]) -> None:
        """
        Append a plugin and install its operations on the document type.

        Raises:
            PluginDependencyError: If the plugin cannot be composed
        """
        self._check(plugin)
        self._add(plugin)
        self._publish({operation.name for operation in plugin.operations()})
        logger.debug(f"Installed plugin {plugin.name} on {self.model.__name__}")
        plugin.configure(self.model)

    def _add(self, plugin: type[Plugin]) -> None:
        for operation in plugin.operations():
            table = self.operations[operation.kind]
            table.setdefault(operation.name, []).append(Definition(plugin, operation.func, operation.chain))
        self.plugins.append(plugin)
        if plugin.initialize is not Plugin.initialize:
            self.initializers.append(plugin.initialize)
        if issubclass(plugin, ReloadAware):
            self.reload_hooks.append(plugin.reset)

    def _publish(self, names: set[str]) -> None:
        for name in sorted(names):
            descriptor = ComposedOperation(
                name,
                self.operations[CLASS].get(name, []),
                self.operations[INSTANCE].get(name) or self.operations[PROPERTY].get(name, []),
                is_property=name in self.operations[PROPERTY],
            )
            setattr(self.model, name, descriptor)

    def inherit(self, model: type["Document"]) -> "Composition":
        """
        Compose a subclass from this composition.

        The subclass gets the same plugins in the same order, its own copy of
        the operation tables, and every configure hook runs again for it so
        per-type state is not shared with the parent.
        """
        composition = Composition(model)
        for plugin in self.plugins:
            composition._add(plugin)
        model.__composition__ = composition
        for plugin in self.plugins:
            plugin.configure(model)
        return composition

    def initialize(self, instance: "Document") -> None:
        """Run every plugin's initialize hook, in install order."""
        for initializer in self.initializers:
            initializer(instance)

    def reset(self, instance: "Document") -> None:
        """Run every ReloadAware plugin's reset hook."""
        for hook in self.reload_hooks:
            hook(instance)
