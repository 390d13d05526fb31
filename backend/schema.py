"""
schema.py — Schema values consumed by the CRUD generator.
Handles: type/field descriptors, the generated method set, validation,
and loading schemas from JSON documents.
"""

import json
import re
from dataclasses import dataclass, field

ID_FIELD = "Id"

_IDENTIFIER = re.compile(r"[A-Za-z_]\w*")


# ── Errors ────────────────────────────────────────────────────────────────

class CrudForgeError(Exception):
    """Base class for every error surfaced to the user."""


class InvalidSchema(CrudForgeError, ValueError):
    """The schema cannot produce well-formed methods."""


class SourceResolutionFailure(CrudForgeError):
    """A model source could not be turned into schemas."""

    def __init__(self, message: str, diagnostics: list = None, file_path: str = ""):
        super().__init__(message)
        self.message = message
        self.diagnostics = list(diagnostics or [])
        self.file_path = file_path

    def to_dict(self):
        return {
            "error": self.message,
            "file_path": self.file_path,
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }


# ── Data classes ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Diagnostic:
    line: int
    column: int
    message: str

    def format(self, file_path: str = "") -> str:
        prefix = f"{file_path}:" if file_path else ""
        return f"{prefix}{self.line}:{self.column}: {self.message}"

    def to_dict(self):
        return {"line": self.line, "column": self.column, "message": self.message}


@dataclass(frozen=True)
class FieldDescriptor:
    name: str

    @property
    def is_id(self) -> bool:
        return self.name == ID_FIELD

    @property
    def column(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class TypeDescriptor:
    name: str
    fields: tuple = field(default_factory=tuple)  # Tuple[FieldDescriptor, ...]

    @classmethod
    def of(cls, name: str, field_names) -> "TypeDescriptor":
        """Build a descriptor from plain field names, keeping their order."""
        return cls(name=name, fields=tuple(FieldDescriptor(n) for n in field_names))

    @property
    def table(self) -> str:
        return self.name.lower()

    @property
    def field_names(self) -> list:
        return [f.name for f in self.fields]

    @property
    def data_fields(self) -> list:
        """Every field except the primary key, in declaration order."""
        return [f for f in self.fields if not f.is_id]

    @property
    def has_id(self) -> bool:
        return any(f.is_id for f in self.fields)

    def to_dict(self):
        return {"name": self.name, "table": self.table, "fields": self.field_names}


@dataclass(frozen=True)
class GeneratedMethodSet:
    type_name: str
    add: str
    find_all: str
    find_by_id: str
    remove: str
    update: str

    def methods(self) -> tuple:
        return (self.add, self.find_all, self.find_by_id, self.remove, self.update)

    def text(self) -> str:
        return "\n\n".join(self.methods())

    def to_dict(self):
        return {
            "add": self.add,
            "find_all": self.find_all,
            "find_by_id": self.find_by_id,
            "remove": self.remove,
            "update": self.update,
        }


# ── Validation ────────────────────────────────────────────────────────────

def validate(type_desc: TypeDescriptor) -> TypeDescriptor:
    """Raise InvalidSchema unless the descriptor renders to well-formed SQL."""
    name = type_desc.name
    if not isinstance(name, str) or not _IDENTIFIER.fullmatch(name):
        raise InvalidSchema(f"Type name {name!r} is not a valid identifier")
    if not type_desc.fields:
        raise InvalidSchema(f"Type {name} has no fields")

    seen = set()
    for f in type_desc.fields:
        if not isinstance(f.name, str) or not _IDENTIFIER.fullmatch(f.name):
            raise InvalidSchema(f"Type {name} has an unresolvable field name {f.name!r}")
        # The separator rule relies on unique names
        if f.name in seen:
            raise InvalidSchema(f"Type {name} declares field {f.name!r} more than once")
        seen.add(f.name)
    return type_desc


# ── Loading ───────────────────────────────────────────────────────────────

def _field_name(raw):
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict) and "name" in raw:
        return raw["name"]
    raise InvalidSchema(f"Cannot resolve a field name from {raw!r}")


def load_schema(data) -> TypeDescriptor:
    """Build a validated TypeDescriptor from {"name": ..., "fields": [...]}."""
    if not isinstance(data, dict):
        raise InvalidSchema("A schema must be an object with 'name' and 'fields'")
    if "name" not in data:
        raise InvalidSchema("Schema is missing 'name'")
    fields = data.get("fields", data.get("properties"))
    if fields is None:
        raise InvalidSchema(f"Schema {data['name']!r} is missing 'fields'")
    if not isinstance(fields, list):
        raise InvalidSchema(f"Schema {data['name']!r}: 'fields' must be a list")
    return validate(TypeDescriptor.of(data["name"], [_field_name(f) for f in fields]))


def load_schemas(text: str) -> list:
    """
    Parse a JSON document holding one schema, a list of schemas, or
    {"types": [...]}. Returns validated descriptors in document order.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise InvalidSchema(f"Schema document is not valid JSON: {exc}") from exc

    if isinstance(doc, dict) and "types" in doc:
        doc = doc["types"]
    items = doc if isinstance(doc, list) else [doc]
    if not items:
        raise InvalidSchema("Schema document contains no types")
    return [load_schema(item) for item in items]
