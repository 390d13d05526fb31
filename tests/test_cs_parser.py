"""Tests for reading C# model sources into schemas."""

import pytest

from cs_parser import NoModelTypes, parse_cs_file, parse_source, resolve_path, scan_directory
from schema import SourceResolutionFailure, TypeDescriptor


def test_parse_public_instance_properties_in_order(user_cs):
    types = parse_cs_file(str(user_cs))
    assert types == [TypeDescriptor.of("User", ["Id", "Name", "Email"])]


def test_inherited_properties_follow_own_properties(inherited_cs):
    types = parse_cs_file(str(inherited_cs))
    # abstract Entity is not a model type itself
    assert [t.name for t in types] == ["Product", "Tag"]
    assert types[0].field_names == ["Title", "Price", "Id"]
    assert types[1].field_names == ["Id", "Label"]


def test_record_positional_parameters_are_properties():
    src = "public record Order(int Id, string Customer)\n{\n    public decimal Total { get; init; }\n}\n"
    (order,) = parse_source(src)
    assert order.field_names == ["Id", "Customer", "Total"]


def test_non_public_and_static_classes_are_skipped():
    src = (
        "internal class Hidden { public int Id { get; set; } }\n"
        "public static class Helpers { public static int Count { get; set; } }\n"
        "public class Visible { public int Id { get; set; } }\n"
    )
    assert [t.name for t in parse_source(src)] == ["Visible"]


def test_syntax_error_reports_diagnostics(broken_cs):
    with pytest.raises(SourceResolutionFailure) as info:
        parse_cs_file(str(broken_cs))
    exc = info.value
    assert exc.diagnostics
    assert exc.file_path == str(broken_cs)
    assert all(d.line >= 1 and d.column >= 1 for d in exc.diagnostics)
    assert exc.to_dict()["diagnostics"][0]["message"]


def test_source_without_public_class_fails():
    with pytest.raises(NoModelTypes, match="must select a model file"):
        parse_source("public interface IThing\n{\n    int Id { get; }\n}\n")


def test_non_cs_file_is_rejected(tmp_path):
    path = tmp_path / "user.txt"
    path.write_text("public class User { public int Id { get; set; } }")
    with pytest.raises(SourceResolutionFailure, match="not a C# file"):
        parse_cs_file(str(path))


def test_extension_check_is_case_insensitive(tmp_path):
    path = tmp_path / "User.CS"
    path.write_text("public class User { public int Id { get; set; } }")
    assert parse_cs_file(str(path))[0].name == "User"


def test_missing_file_is_a_resolution_failure(tmp_path):
    with pytest.raises(SourceResolutionFailure, match="Cannot read"):
        parse_cs_file(str(tmp_path / "Nope.cs"))


def test_scan_directory_skips_build_output(tmp_path, user_cs, broken_cs):
    (tmp_path / "obj").mkdir()
    (tmp_path / "obj" / "Generated.cs").write_text("public class Gen { public int Id { get; set; } }")
    (tmp_path / "IService.cs").write_text("public interface IService { }")

    found, failures = scan_directory(str(tmp_path))
    assert list(found) == [str(user_cs)]
    assert found[str(user_cs)][0].name == "User"
    assert list(failures) == [str(broken_cs)]


def test_scan_missing_directory_is_empty(tmp_path):
    assert scan_directory(str(tmp_path / "missing")) == ({}, {})


def test_partial_declarations_merge_in_source_order():
    src = (
        "public partial class User\n{\n    public int Id { get; set; }\n}\n\n"
        "public partial class User\n{\n    public string Name { get; set; }\n}\n"
    )
    assert parse_source(src) == [TypeDescriptor.of("User", ["Id", "Name"])]


def test_partial_base_class_from_any_part():
    src = (
        "public class Entity { public int Id { get; set; } }\n"
        "public partial class Post { public string Title { get; set; } }\n"
        "public partial class Post : Entity { public string Body { get; set; } }\n"
    )
    post = parse_source(src)[1]
    assert post.field_names == ["Title", "Body", "Id"]


def test_public_struct_is_a_model_type():
    src = "public struct Point\n{\n    public int Id { get; set; }\n    public int X { get; set; }\n}\n"
    assert parse_source(src) == [TypeDescriptor.of("Point", ["Id", "X"])]


def test_resolve_path_on_file_has_no_failures(user_cs):
    types, failures = resolve_path(str(user_cs))
    assert [t.name for t in types] == ["User"]
    assert failures == {}


def test_resolve_path_on_directory_collects_every_file(tmp_path, user_cs, inherited_cs, broken_cs):
    types, failures = resolve_path(str(tmp_path))
    # Broken.cs, Product.cs, User.cs in name order
    assert [t.name for t in types] == ["Product", "Tag", "User"]
    assert list(failures) == [str(broken_cs)]


def test_resolve_path_on_directory_without_models(tmp_path):
    (tmp_path / "IService.cs").write_text("public interface IService { }")
    with pytest.raises(NoModelTypes):
        resolve_path(str(tmp_path))
