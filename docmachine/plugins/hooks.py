"""
Hook decorators for plugins and document lifecycle callbacks.

Provides a declarative way to extend document types: plugins mark the
operations they contribute, and documents mark their lifecycle callbacks
and custom validators.
"""

from dataclasses import dataclass
from typing import Callable, Any, Optional, TypeVar

F = TypeVar('F', bound=Callable[..., Any])

CLASS = "class"
INSTANCE = "instance"
PROPERTY = "property"

CALLBACK_KINDS = (
    "before_validation",
    "after_validation",
    "before_save",
    "after_save",
    "before_create",
    "after_create",
    "before_update",
    "after_update",
    "before_destroy",
    "after_destroy",
)


@dataclass(frozen=True)
class Operation:
    """An operation contributed by a plugin."""

    kind: str
    name: str
    func: Callable[..., Any]
    chain: bool = False


def _operation_decorator(kind: str, func: Optional[F], chain: bool, name: Optional[str]):
    def decorator(f: F) -> F:
        setattr(f, '_docmachine_operation', Operation(kind, name or f.__name__, f, chain))  # type: ignore[attr-defined]
        return f

    if func is not None:
        return decorator(func)
    return decorator


def class_method(func: Optional[F] = None, *, chain: bool = False, name: Optional[str] = None):
    """
    Decorator to mark a plugin function as a class-level operation.

    The function receives the document class as its first argument. With
    ``chain=True`` the second argument is ``call_next``, which invokes the
    definition installed by an earlier plugin.

    Example:
        >>> class Auditing(Plugin):
        ...     name = "auditing"
        ...     requires = ("querying",)
        ...
        ...     @class_method(chain=True)
        ...     def find_one(cls, call_next, options=None):
        ...         audit(cls, options)
        ...         return call_next(options)
    """
    return _operation_decorator(CLASS, func, chain, name)


def instance_method(func: Optional[F] = None, *, chain: bool = False, name: Optional[str] = None):
    """
    Decorator to mark a plugin function as an instance-level operation.

    The function receives the document instance as its first argument.

    Example:
        >>> class Touch(Plugin):
        ...     name = "touch"
        ...
        ...     @instance_method
        ...     def touch(self):
        ...         self.updated_at = datetime.now()
        ...         return self.save()
    """
    return _operation_decorator(INSTANCE, func, chain, name)


def instance_property(func: Optional[F] = None, *, chain: bool = False, name: Optional[str] = None):
    """Decorator to mark a plugin function as a read-only instance property."""
    return _operation_decorator(PROPERTY, func, chain, name)


def get_operation(func: Any) -> Optional[Operation]:
    """Return the Operation a function was marked with, if any."""
    return getattr(func, '_docmachine_operation', None)


def _callback(kind: str) -> Callable[[F], F]:
    def decorator(func: F) -> F:
        kinds = list(getattr(func, '_callback_kinds', ()))
        kinds.append(kind)
        setattr(func, '_callback_kinds', tuple(kinds))  # type: ignore[attr-defined]
        return func
    decorator.__name__ = kind
    decorator.__doc__ = f"Decorator to mark a document method as a {kind} callback."
    return decorator


before_validation = _callback("before_validation")
after_validation = _callback("after_validation")
before_save = _callback("before_save")
after_save = _callback("after_save")
before_create = _callback("before_create")
after_create = _callback("after_create")
before_update = _callback("before_update")
after_update = _callback("after_update")
before_destroy = _callback("before_destroy")
after_destroy = _callback("after_destroy")


def marked_functions(model: type, marker: str) -> list[Callable[..., Any]]:
    """
    Functions of ``model`` and its bases that carry ``marker``.

    Base class functions come first. A subclass redefining a function
    replaces it; redefining it without the marker removes it.
    """
    found: dict[str, Callable[..., Any]] = {}
    for klass in reversed(model.__mro__):
        for attr_name, attr in vars(klass).items():
            # Skip special Python attributes (double underscore)
            if attr_name.startswith('__'):
                continue
            if callable(attr) and getattr(attr, marker, False):
                found.pop(attr_name, None)
                found[attr_name] = attr
            elif attr_name in found:
                del found[attr_name]
    return list(found.values())


def validate(func: F) -> F:
    """
    Decorator to mark a document method as a custom validator.

    Validators run inside valid() after the key schema has been checked and
    report problems through ``self.errors.add(field, message)``.

    Example:
        >>> class User(Document):
        ...     email: str
        ...
        ...     @validate
        ...     def email_has_at(self):
        ...         if "@" not in (self.email or ""):
        ...             self.errors.add("email", "is invalid")
    """
    setattr(func, '_is_validator', True)  # type: ignore[attr-defined]
    return func
