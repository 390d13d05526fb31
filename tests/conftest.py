"""Shared fixtures: C# model sources and JSON schemas written to tmp_path."""

import json

import pytest

USER_CS = """\
using System;

namespace Shop.Models
{
    /// <summary>A registered user.</summary>
    public class User
    {
        public int Id { get; set; }
        public string Name { get; set; }
        public string Email { get; set; }
        private int Secret { get; set; }
        public static int Count { get; set; }
    }
}
"""

INHERITED_CS = """\
namespace Shop.Models;

public abstract class Entity
{
    public int Id { get; set; }
}

public class Product : Entity, IComparable
{
    public string Title { get; set; }
    public decimal Price { get; set; }
}

public class Tag
{
    public int Id { get; set; }
    public string Label { get; set; }
}
"""

BROKEN_CS = """\
public class Broken
{
    public int Id { get; set; }
    public string Name { get; set;
"""


@pytest.fixture
def user_cs(tmp_path):
    path = tmp_path / "User.cs"
    path.write_text(USER_CS, encoding="utf-8")
    return path


@pytest.fixture
def inherited_cs(tmp_path):
    path = tmp_path / "Product.cs"
    path.write_text(INHERITED_CS, encoding="utf-8")
    return path


@pytest.fixture
def broken_cs(tmp_path):
    path = tmp_path / "Broken.cs"
    path.write_text(BROKEN_CS, encoding="utf-8")
    return path


@pytest.fixture
def user_schema(tmp_path):
    path = tmp_path / "user.json"
    path.write_text(json.dumps({"name": "User", "fields": ["Id", "Name", "Email"]}))
    return path
