# screens/import_wizard/models.py
"""
Types shared by every stage of the import wizard.

A caller describes its target table as a list of FieldSpec (the schema);
everything else here is owned by the ImportSession.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from screens.import_wizard.errors import SchemaError


class FieldType(str, Enum):
    SCALAR = "scalar"
    LIST = "list"
    BOOLEAN = "boolean"


# Type names the registry screens have historically used
_TYPE_ALIASES = {
    "scalar": FieldType.SCALAR,
    "string": FieldType.SCALAR,
    "text": FieldType.SCALAR,
    "number": FieldType.SCALAR,
    "list": FieldType.LIST,
    "array": FieldType.LIST,
    "boolean": FieldType.BOOLEAN,
    "boolean-like": FieldType.BOOLEAN,
    "bool": FieldType.BOOLEAN,
}


def parse_field_type(value: Union[str, FieldType, None]) -> FieldType:
    if value is None or value == "":
        return FieldType.SCALAR
    if isinstance(value, FieldType):
        return value
    try:
        return _TYPE_ALIASES[str(value).strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown field type '{value}'") from None


class Phase(str, Enum):
    UPLOAD = "upload"
    MAP = "map"
    PREVIEW = "preview"
    CLOSED = "closed"


@dataclass(frozen=True)
class FieldSpec:
    """One target column of an import."""
    key: str
    label: str
    required: bool = False
    type: FieldType = FieldType.SCALAR
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "type", parse_field_type(self.type))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldSpec":
        if not data.get("key"):
            raise SchemaError("Field definition is missing 'key'")
        return cls(
            key=str(data["key"]),
            label=str(data.get("label") or data["key"]),
            required=bool(data.get("required", False)),
            type=parse_field_type(data.get("type")),
            description=data.get("description"),
        )

    @property
    def is_list(self) -> bool:
        return self.type is FieldType.LIST

    @property
    def is_boolean(self) -> bool:
        return self.type is FieldType.BOOLEAN


@dataclass(frozen=True)
class CellRef:
    row: int
    key: str


Schema = List[FieldSpec]
RawRecord = Dict[str, Any]
DraftRecord = Dict[str, Any]
ColumnMapping = Dict[str, Optional[str]]


def build_schema(fields: Iterable[Union[FieldSpec, Mapping[str, Any]]]) -> Schema:
    """Normalise caller field definitions and reject duplicate keys."""
    schema: Schema = []
    seen = set()
    for f in fields or []:
        spec = f if isinstance(f, FieldSpec) else FieldSpec.from_dict(f)
        if spec.key in seen:
            raise SchemaError(f"Duplicate field key '{spec.key}' in schema")
        seen.add(spec.key)
        schema.append(spec)
    return schema


def field_index(schema: Schema) -> Dict[str, FieldSpec]:
    return {f.key: f for f in schema}
