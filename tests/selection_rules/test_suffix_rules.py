"""Unit tests for suffix allow-lists."""

import pytest

from treecopy.exceptions import ConfigurationError
from treecopy.selection_rules.suffix_rules import SuffixRules, includes


@pytest.mark.parametrize("filename", ["a.txt", "b.jpg", "no_extension", ".hidden", "x" * 200])
def test_empty_rules_include_everything(filename):
    assert includes(filename, set())
    assert SuffixRules().includes(filename)


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("a.txt", True),
        ("b.jpg", False),
        ("diagram.drawio.png", True),
        ("photo.png", False),
        ("holiday_screenshot", True),
        ("screenshot", False),
        ("report.TXT", False),  # case-sensitive
        ("txt", False),
        ("a.txt.bak", False),
    ],
)
def test_includes_matches_trailing_substring(filename, expected):
    rules = {".txt", ".drawio.png", "_screenshot"}
    assert includes(filename, rules) is expected
    assert SuffixRules(rules).includes(filename) is expected


def test_rules_are_not_globs():
    assert not includes("a.txt", {"*.txt"})
    assert includes("a*.txt", {"*.txt"})


def test_duplicates_collapse_in_first_seen_order():
    rules = SuffixRules([".md", ".txt", ".md"])
    assert rules.suffixes == (".md", ".txt")
    assert len(rules) == 2
    assert rules.has_rules()


def test_empty_suffix_rejected():
    with pytest.raises(ConfigurationError):
        SuffixRules([".txt", ""])


def test_add_rule_rejects_empty_string():
    rules = SuffixRules()
    with pytest.raises(ConfigurationError):
        rules.add_rule("")
    assert not rules.has_rules()


def test_load_rules_from_file(tmp_path):
    rules_file = tmp_path / "suffixes.txt"
    rules_file.write_text("// images\n.png\n\n  .txt  \n-screenshot-19-05-1948\n")

    rules = SuffixRules()
    rules.load_rules(rules_file)

    assert rules.suffixes == (".png", ".txt", "-screenshot-19-05-1948")


def test_load_rules_from_several_files(tmp_path):
    first = tmp_path / "first.txt"
    first.write_text(".png\n")
    second = tmp_path / "second.txt"
    second.write_text(".txt\n")

    rules = SuffixRules()
    rules.load_rules([first, str(second)])

    assert rules.suffixes == (".png", ".txt")


def test_load_rules_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        SuffixRules().load_rules(tmp_path / "missing.txt")
