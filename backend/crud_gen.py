"""
crud_gen.py — Generates Dapper-style C# data-access methods from a type schema.
Emits: Add, FindAll, FindById, Remove, Update against a table named after the type.
"""

from schema import GeneratedMethodSet, TypeDescriptor, validate

_OPEN_CONNECTION = (
    "using IDbConnection dbConnection = Connection;",
    "dbConnection.Open();",
)


def _method(signature: str, *statements: str) -> str:
    """Wrap statements in a method body that opens a scoped connection."""
    body = [f"\t{line}" for line in _OPEN_CONNECTION + statements]
    return "\n".join([signature, "{", *body, "}"])


# ── FIELD LISTS ───────────────────────────────────────────────────────────

def _columns(fields) -> str:
    return ", ".join(f.column for f in fields)


def _placeholders(fields) -> str:
    return ", ".join(f"@{f.column}" for f in fields)


def _assignments(fields) -> str:
    return ", ".join(f"{f.column} = @{f.name}" for f in fields)


# ── METHODS ───────────────────────────────────────────────────────────────

def _add(t: TypeDescriptor) -> str:
    cols = t.data_fields
    sql = f"INSERT INTO {t.table} ({_columns(cols)}) VALUES({_placeholders(cols)}) RETURNING id"
    return _method(
        f"public int Add({t.name} item)",
        f'return dbConnection.QueryFirst<int>("{sql}", item);',
    )


def _find_all(t: TypeDescriptor) -> str:
    sql = f"SELECT {_columns(t.fields)} FROM {t.table}"
    return _method(
        f"public IEnumerable<{t.name}> FindAll()",
        f'return dbConnection.Query<{t.name}>("{sql}");',
    )


def _find_by_id(t: TypeDescriptor) -> str:
    sql = f"SELECT {_columns(t.fields)} FROM {t.table} WHERE id = @ID"
    return _method(
        f"public {t.name} FindById(int id)",
        f'return dbConnection.Query<{t.name}>("{sql}", new {{ ID = id }}).FirstOrDefault();',
    )


def _remove(t: TypeDescriptor) -> str:
    sql = f"DELETE FROM {t.table} WHERE id = @Id"
    return _method(
        "public int Remove(int id)",
        f'dbConnection.Execute("{sql}", new {{ Id = id }});',
        "return id;",
    )


def _update(t: TypeDescriptor) -> str:
    sql = f"UPDATE {t.table} SET {_assignments(t.data_fields)} WHERE id = @Id"
    return _method(
        f"public int Update({t.name} item)",
        f'dbConnection.Execute("{sql}", item);',
        "return item.Id;",
    )


# ── PUBLIC API ────────────────────────────────────────────────────────────

def build_method_set(type_desc: TypeDescriptor) -> GeneratedMethodSet:
    """Render the five data-access methods for one validated type."""
    validate(type_desc)
    return GeneratedMethodSet(
        type_name=type_desc.name,
        add=_add(type_desc),
        find_all=_find_all(type_desc),
        find_by_id=_find_by_id(type_desc),
        remove=_remove(type_desc),
        update=_update(type_desc),
    )


def generate(type_desc: TypeDescriptor) -> str:
    """
    Generate the CRUD methods for type_desc as one text block.
    Raises InvalidSchema before rendering anything if the schema is unusable.
    """
    return build_method_set(type_desc).text()


def generate_all(types: list) -> str:
    """
    Generate one block per type, separated by a blank line.
    Every type is validated before any text is produced.
    """
    for t in types:
        validate(t)
    return "\n\n".join(generate(t) for t in types)
