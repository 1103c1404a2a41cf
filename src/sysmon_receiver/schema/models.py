"""Schema models describing how sysmon records map to sink tables."""

from enum import Enum
from typing import Annotated, Any, Callable, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from ..transform import functions


class RecordType(str, Enum):
    """Record shapes emitted by the system monitor."""

    OP_STAT = "op_stat"
    PROC_TOP = "proc_top"
    FUN_TOP = "fun_top"
    APP_TOP = "app_top"
    NODE_ROLE = "node_role"


class TransformName(str, Enum):
    """Transforms a field specification can refer to."""

    NULLABLE = "nullable"
    TIMESTAMP = "timestamp"
    TO_STRING = "to_string"
    FORMAT_FUNCTION = "format_function"
    FORMAT_STACKTRACE = "format_stacktrace"


# Transform -> (function, argument type or None when it takes no argument)
TRANSFORMS: dict[TransformName, tuple[Callable[..., Any], Optional[type]]] = {
    TransformName.NULLABLE: (functions.nullable, None),
    TransformName.TIMESTAMP: (functions.timestamp, None),
    TransformName.TO_STRING: (functions.to_string, int),
    TransformName.FORMAT_FUNCTION: (functions.format_function, None),
    TransformName.FORMAT_STACKTRACE: (functions.format_stacktrace, None),
}


class BareField(BaseModel):
    """Field stored exactly as received."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["bare"] = "bare"
    name: str = Field(..., min_length=1, description="Column name in the sink table")

    def apply(self, value: Any) -> Any:
        return value


class TransformedField(BaseModel):
    """Field passed through a single-argument transform."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transform"] = "transform"
    name: str = Field(..., min_length=1, description="Column name in the sink table")
    transform: TransformName

    _function: Callable[[Any], Any] = PrivateAttr()

    @model_validator(mode="after")
    def check_transform_arity(self) -> "TransformedField":
        if TRANSFORMS[self.transform][1] is not None:
            raise ValueError(f"Transform {self.transform.value} requires an argument")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._function = TRANSFORMS[self.transform][0]

    def apply(self, value: Any) -> Any:
        return self._function(value)


class TransformedFieldWithArg(BaseModel):
    """Field passed through a transform together with a static argument."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transform_arg"] = "transform_arg"
    name: str = Field(..., min_length=1, description="Column name in the sink table")
    transform: TransformName
    argument: Any = Field(..., description="Static argument, e.g. a truncation length")

    _function: Callable[[Any, Any], Any] = PrivateAttr()

    @model_validator(mode="after")
    def check_transform_arity(self) -> "TransformedFieldWithArg":
        argument_type = TRANSFORMS[self.transform][1]
        if argument_type is None:
            raise ValueError(f"Transform {self.transform.value} does not take an argument")
        # bool is an int subclass but never a valid length
        if not isinstance(self.argument, argument_type) or isinstance(self.argument, bool):
            raise ValueError(
                f"Transform {self.transform.value} argument must be {argument_type.__name__}, "
                f"got {type(self.argument).__name__} {self.argument!r}"
            )
        return self

    def model_post_init(self, __context: Any) -> None:
        self._function = TRANSFORMS[self.transform][0]

    def apply(self, value: Any) -> Any:
        return self._function(value, self.argument)


FieldSpec = Annotated[
    Union[BareField, TransformedField, TransformedFieldWithArg],
    Field(discriminator="kind"),
]


def field_spec(name: str, transform: Optional[TransformName] = None, argument: Any = None):
    """Build a field specification from the compact (name, transform, arg) form.

    Args:
        name: Column name
        transform: Optional transform to apply
        argument: Optional static argument for the transform

    Returns:
        BareField, TransformedField or TransformedFieldWithArg
    """
    if transform is None:
        return BareField(name=name)
    if argument is None:
        return TransformedField(name=name, transform=transform)
    return TransformedFieldWithArg(name=name, transform=transform, argument=argument)


class SchemaEntry(BaseModel):
    """Sink table and ordered field list for one record type."""

    model_config = ConfigDict(frozen=True)

    record_type: RecordType
    table: str = Field(..., min_length=1, description="Sink table name")
    fields: tuple[FieldSpec, ...] = Field(..., min_length=1)
    description: Optional[str] = None

    @model_validator(mode="after")
    def check_unique_names(self) -> "SchemaEntry":
        names = self.field_names
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate field names in {self.table}: {', '.join(duplicates)}")
        return self

    @property
    def field_names(self) -> list[str]:
        """Field names in schema order."""
        return [spec.name for spec in self.fields]

    @property
    def arity(self) -> int:
        """Number of positional values a raw record must carry."""
        return len(self.fields)
