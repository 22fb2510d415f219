"""
Query options for docmachine.

QueryOptions enumerates the options every finder understands. Options
it does not recognize are kept as passthrough modifiers for the store.
"""

from typing import Any, Mapping, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from docmachine.exceptions import ArgumentError


class QueryOptions(BaseModel):
    """
    Options accepted by finder, counter, deleter and updater operations.

    Example:
        >>> options = QueryOptions.parse({
        ...     "conditions": {"age__gte": 18},
        ...     "order": "name asc",
        ...     "limit": 10,
        ...     "hint": "age_1",  # passthrough modifier
        ... })
        >>> options.passthrough
        {'hint': 'age_1'}
    """

    model_config = ConfigDict(
        extra="allow",  # Unknown keys are store-specific modifiers
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    conditions: dict[str, Any] = Field(default_factory=dict)
    order: Optional[str] = None
    limit: Optional[int] = Field(None, ge=0)
    offset: Optional[int] = Field(None, ge=0, validation_alias=AliasChoices("offset", "skip"))
    fields: Optional[list[str]] = None
    # Identity shortcut: a bare id or a list of ids
    ids: Any = Field(None, validation_alias=AliasChoices("ids", "_id"))

    @field_validator("order", mode="before")
    @classmethod
    def _join_order(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return ", ".join(str(part) for part in value)
        return value

    @field_validator("fields", mode="before")
    @classmethod
    def _split_fields(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [name.strip() for name in value.split(",") if name.strip()]
        return value

    @classmethod
    def parse(cls, options: Union["QueryOptions", Mapping[str, Any], None] = None, **kwargs: Any) -> "QueryOptions":
        """
        Build options from a mapping, an existing QueryOptions, or kwargs.

        Args:
            options: Mapping or QueryOptions (optional)
            **kwargs: Additional options, overriding ``options``

        Returns:
            QueryOptions instance

        Raises:
            ArgumentError: If an option has an invalid value
        """
        if isinstance(options, QueryOptions):
            if not kwargs:
                return options
            data = options.to_dict()
        elif options is None:
            data = {}
        elif isinstance(options, Mapping):
            data = dict(options)
        else:
            raise ArgumentError(f"Query options must be a mapping, got {type(options).__name__}")

        data.update(kwargs)
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ArgumentError(f"Invalid query options: {e}") from e

    def to_dict(self) -> dict[str, Any]:
        """Options that were explicitly set, including passthrough keys."""
        declared = type(self).model_fields
        data = {name: getattr(self, name) for name in self.model_fields_set if name in declared}
        data.update(self.passthrough)
        return data

    def merge(self, **updates: Any) -> "QueryOptions":
        """Return new options with ``updates`` applied."""
        return QueryOptions.parse(self, **updates)

    @property
    def passthrough(self) -> dict[str, Any]:
        """Store-specific modifiers that are not recognized options."""
        return dict(self.model_extra or {})

    @property
    def has_ids(self) -> bool:
        return "ids" in self.model_fields_set and self.ids is not None
