"""
cs_parser.py — C# model reader backed by tree-sitter for a real CST.
Turns every public class, struct or record of a model file into a TypeDescriptor:
public instance properties in declaration order, record positional
parameters, and properties inherited from base classes in the same file.
Syntax errors are reported as diagnostics instead of partial schemas.

Install: pip install tree-sitter tree-sitter-c-sharp
"""

import os
import re

import tree_sitter_c_sharp as _tscsharp
from tree_sitter import Language, Parser

from schema import Diagnostic, SourceResolutionFailure, TypeDescriptor

_CS_LANG = Language(_tscsharp.language())
_ts_parser = Parser(_CS_LANG)

SKIP_DIRS = frozenset({
    "bin", "obj", "node_modules", ".git", ".vs",
    "Migrations", "migrations", "wwwroot",
})

_TYPE_DECLARATIONS = (
    "class_declaration",
    "struct_declaration",
    "record_declaration",
    "record_struct_declaration",
)

# Older grammars give `record struct` its own node type
_RECORD_DECLARATIONS = ("record_declaration", "record_struct_declaration")


class NoModelTypes(SourceResolutionFailure):
    """The source parsed cleanly but declares no public model type."""


# ── Tree-sitter helpers ───────────────────────────────────────────────────

def _node_text(node, src: bytes) -> str:
    """Return the source text for a tree-sitter node."""
    return src[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def _walk_nodes(node, *node_types):
    """Yield all descendant nodes (including self) matching any of the given types."""
    if node.type in node_types:
        yield node
    for child in node.children:
        yield from _walk_nodes(child, *node_types)


def _get_modifiers(node, src: bytes) -> list:
    """Return all modifier texts for a declaration node."""
    return [
        _node_text(c, src)
        for c in node.children
        if c.type == "modifier"
    ]


def _child_of_type(node, node_type: str):
    for child in node.children:
        if child.type == node_type:
            return child
    return None


def _is_model_type(decl, src: bytes) -> bool:
    """Public, instantiable classes, structs and records are model types."""
    mods = _get_modifiers(decl, src)
    return "public" in mods and "abstract" not in mods and "static" not in mods


def _decl_name(decl, src: bytes) -> str:
    name_node = decl.child_by_field_name("name")
    return _node_text(name_node, src).strip() if name_node else ""


def _base_class(decl, src: bytes) -> str:
    """Return the base class named in the base_list, ignoring interfaces."""
    bases_node = decl.child_by_field_name("bases") or _child_of_type(decl, "base_list")
    if not bases_node:
        return ""
    for child in bases_node.named_children:
        if child.type == "primary_constructor_base_type":
            child = child.named_children[0] if child.named_children else child
        if child.type not in ("identifier", "generic_name", "qualified_name"):
            continue
        name = _node_text(child, src).strip()
        if name.startswith("I") and len(name) > 1 and name[1].isupper():
            continue
        return name.split("<")[0].split(".")[-1]
    return ""


# ── Diagnostics ───────────────────────────────────────────────────────────

def _diagnostics(root, src: bytes) -> list:
    """Collect ERROR and MISSING nodes as 1-based located diagnostics."""
    found = []
    if not root.has_error:
        return found

    def visit(node):
        if node.is_missing:
            row, col = node.start_point
            found.append(Diagnostic(row + 1, col + 1, f"missing '{node.type}'"))
            return
        if node.type == "ERROR":
            row, col = node.start_point
            snippet = _node_text(node, src).strip().splitlines()
            near = snippet[0][:40] if snippet else ""
            found.append(Diagnostic(row + 1, col + 1, f"syntax error near '{near}'"))
            return
        if node.has_error:
            for child in node.children:
                visit(child)

    visit(root)
    if not found:
        found.append(Diagnostic(1, 1, "syntax error"))
    return found


# ── Properties ────────────────────────────────────────────────────────────

def _own_properties(decl, src: bytes) -> list:
    """Public instance property names declared directly on a type, in order."""
    names = []

    # Positional parameters become properties on records only
    params = None
    if decl.type in _RECORD_DECLARATIONS:
        params = decl.child_by_field_name("parameters") or _child_of_type(decl, "parameter_list")
    if params is not None:
        for param in params.named_children:
            if param.type != "parameter":
                continue
            name_node = param.child_by_field_name("name")
            if name_node:
                names.append(_node_text(name_node, src).strip())

    body = decl.child_by_field_name("body") or _child_of_type(decl, "declaration_list")
    if body is None:
        return names

    for child in body.children:
        if child.type != "property_declaration":
            continue
        mods = _get_modifiers(child, src)
        if "public" not in mods:
            continue
        if "static" in mods or "const" in mods:
            continue
        name_node = child.child_by_field_name("name")
        if not name_node:
            continue
        prop_name = _node_text(name_node, src).strip()
        if not re.match(r"^@?[A-Za-z_]\w*$", prop_name):
            continue
        names.append(prop_name.lstrip("@"))
    return names


def _resolve_fields(name: str, own: dict, bases: dict) -> list:
    """Own properties first, then inherited ones not hidden by the subclass."""
    fields = []
    visited = set()
    current = name
    while current in own and current not in visited:
        visited.add(current)
        for prop in own[current]:
            if prop not in fields:
                fields.append(prop)
        current = bases.get(current, "")
    return fields


# ── Public parse API ──────────────────────────────────────────────────────

def parse_source(content: str, file_path: str = "<source>") -> list:
    """
    Parse C# source text and return one TypeDescriptor per public model type.
    Raises SourceResolutionFailure on syntax errors or when no type is found.
    """
    src = content.encode("utf-8")
    tree = _ts_parser.parse(src)
    root = tree.root_node

    problems = _diagnostics(root, src)
    if problems:
        raise SourceResolutionFailure(
            f"{len(problems)} syntax error(s) in {file_path}",
            diagnostics=problems,
            file_path=file_path,
        )

    own = {}
    bases = {}
    models = []
    for decl in _walk_nodes(root, *_TYPE_DECLARATIONS):
        name = _decl_name(decl, src)
        if not name:
            continue
        # Partial declarations merge into one type, in source order
        props = own.setdefault(name, [])
        for prop in _own_properties(decl, src):
            if prop not in props:
                props.append(prop)
        if not bases.get(name):
            bases[name] = _base_class(decl, src)
        if _is_model_type(decl, src) and name not in models:
            models.append(name)

    if not models:
        raise NoModelTypes(
            f"No public model type found in {file_path}, must select a model file",
            diagnostics=[Diagnostic(1, 1, "no public class, struct or record declaration")],
            file_path=file_path,
        )

    return [TypeDescriptor.of(name, _resolve_fields(name, own, bases)) for name in models]


def parse_cs_file(file_path: str) -> list:
    """Parse a .cs model file into TypeDescriptors."""
    if os.path.splitext(file_path)[1].upper() != ".CS":
        raise SourceResolutionFailure(
            f"{file_path} is not a C# file, must select a model file",
            file_path=file_path,
        )
    try:
        with open(file_path, "r", encoding="utf-8-sig") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise SourceResolutionFailure(
            f"Cannot read {file_path}: {exc}", file_path=file_path
        ) from exc
    return parse_source(content, file_path)


# ── Directory scan ────────────────────────────────────────────────────────

def scan_directory(directory: str):
    """
    Scan a directory recursively for C# model files.
    Returns (types_by_file, failures_by_file).
    """
    found = {}
    failures = {}
    if not os.path.isdir(directory):
        return found, failures

    for root, dirs, files in os.walk(directory):
        dirs[:] = sorted(d for d in dirs if d not in SKIP_DIRS)
        for fname in sorted(files):
            if not fname.endswith(".cs"):
                continue
            fpath = os.path.join(root, fname)
            try:
                types = parse_cs_file(fpath)
            except NoModelTypes:
                continue
            except SourceResolutionFailure as exc:
                failures[fpath] = exc
                continue
            found[fpath] = [t for t in types if t.fields]

    return found, failures


def resolve_path(path: str):
    """
    Resolve a .cs file or a project directory into TypeDescriptors.
    Returns (types, failures_by_file); a single file never has failures,
    it raises instead.
    """
    if not os.path.isdir(path):
        return parse_cs_file(path), {}

    found, failures = scan_directory(path)
    types = [t for file_types in found.values() for t in file_types]
    if not types and not failures:
        raise NoModelTypes(
            f"No public model type found under {path}, must select a model file",
            file_path=path,
        )
    return types, failures
