"""Schema descriptions sent to the generation service.

A schema is a small recursive type description over six kinds. Internally it
is a tagged union of pydantic models discriminated on ``type``; on the wire it
is the plain dict shape the generation service understands:

    {"type": "OBJECT", "properties": {...}, "required": [...]}
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class SchemaValidationError(ValueError):
    """Raised when a decoded value does not satisfy a schema."""

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")


class SchemaType(str, Enum):
    """Primitive kinds of the schema vocabulary."""
    STRING = "STRING"
    NUMBER = "NUMBER"
    INTEGER = "INTEGER"
    BOOLEAN = "BOOLEAN"
    ARRAY = "ARRAY"
    OBJECT = "OBJECT"


class _SchemaNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    description: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        """Return the dict shape sent to the generation service."""
        return self.model_dump(mode="json", exclude_none=True)

    def validate_value(self, value: Any, path: str = "$") -> None:
        raise NotImplementedError


class StringSchema(_SchemaNode):
    type: Literal["STRING"] = SchemaType.STRING.value

    def validate_value(self, value: Any, path: str = "$") -> None:
        if not isinstance(value, str):
            raise SchemaValidationError(path, f"expected string, got {type(value).__name__}")


class NumberSchema(_SchemaNode):
    type: Literal["NUMBER"] = SchemaType.NUMBER.value

    def validate_value(self, value: Any, path: str = "$") -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SchemaValidationError(path, f"expected number, got {type(value).__name__}")


class IntegerSchema(_SchemaNode):
    type: Literal["INTEGER"] = SchemaType.INTEGER.value

    def validate_value(self, value: Any, path: str = "$") -> None:
        if isinstance(value, bool):
            raise SchemaValidationError(path, "expected integer, got bool")
        if isinstance(value, float) and value.is_integer():
            return
        if not isinstance(value, int):
            raise SchemaValidationError(path, f"expected integer, got {type(value).__name__}")


class BooleanSchema(_SchemaNode):
    type: Literal["BOOLEAN"] = SchemaType.BOOLEAN.value

    def validate_value(self, value: Any, path: str = "$") -> None:
        if not isinstance(value, bool):
            raise SchemaValidationError(path, f"expected boolean, got {type(value).__name__}")


class ArraySchema(_SchemaNode):
    type: Literal["ARRAY"] = SchemaType.ARRAY.value
    items: "Schema"

    def validate_value(self, value: Any, path: str = "$") -> None:
        if not isinstance(value, list):
            raise SchemaValidationError(path, f"expected array, got {type(value).__name__}")
        for index, item in enumerate(value):
            self.items.validate_value(item, f"{path}[{index}]")


class ObjectSchema(_SchemaNode):
    type: Literal["OBJECT"] = SchemaType.OBJECT.value
    properties: Dict[str, "Schema"] = Field(default_factory=dict)
    required: List[str] = Field(default_factory=list)

    def validate_value(self, value: Any, path: str = "$") -> None:
        if not isinstance(value, dict):
            raise SchemaValidationError(path, f"expected object, got {type(value).__name__}")

        for name in self.required:
            if value.get(name) is None:
                raise SchemaValidationError(f"{path}.{name}", "required property is missing")

        for name, sub_schema in self.properties.items():
            # Optional properties may be omitted or null
            if value.get(name) is not None:
                sub_schema.validate_value(value[name], f"{path}.{name}")


Schema = Annotated[
    Union[
        StringSchema,
        NumberSchema,
        IntegerSchema,
        BooleanSchema,
        ArraySchema,
        ObjectSchema,
    ],
    Field(discriminator="type"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()


def string_list(description: Optional[str] = None) -> ArraySchema:
    """Shorthand for ``ARRAY`` of ``STRING``."""
    return ArraySchema(items=StringSchema(), description=description)
