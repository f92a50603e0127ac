import logging

import pytest
from lua_test import compile_lua, compile_error

from dulua.errors import HelperArgumentError, MissingFileError
from dulua.exports import Export, encode_export_statement, find_exports, has_export_statement
from dulua.functions import lua_long_string, lua_string_value

# ---------------------------
# export statements
# ---------------------------

export_cases = [
("local speed = 100 --export: Maximum speed",
 "local speed = 100 --[[@export:speed]] --export: Maximum speed"),

("local speed = 100 --export",
 "local speed = 100 --[[@export:speed]] --export"),

("  name = \"Core\"  -- export: Display name",
 "  name = \"Core\" --[[@export:name]] --export: Display name"),

("local enabled=true--export:",
 "local enabled = true --[[@export:enabled]] --export"),

# only the real comment is the marker
("local s = \"a --export\" --export: Text",
 "local s = \"a --export\" --[[@export:s]] --export: Text"),
]


@pytest.mark.parametrize("line,expected", export_cases)
def test_encode_export_statement(line, expected):
    assert has_export_statement(line)
    assert encode_export_statement(line) == expected
    assert not has_export_statement(expected)


@pytest.mark.parametrize("line", [
    "local speed = 100 -- exported later",
    "-- local speed = 100 --export",
    "print(1) --export",
    "local s = \"x --export: y\"",
    "local s = [[--export]]",
])
def test_not_export_statements(line):
    assert not has_export_statement(line)


def test_exports_collected_from_build(tmp_path):
    result = compile_lua(tmp_path, {
        "src/main.lua": "local speed = 100 --export: Max speed\nlocal label = 'x' --export\nprint(speed, label)",
    })
    assert result.output.split("\n")[0] == "local speed = 100 --[[@export:speed]] --export: Max speed"
    assert result.exports == [Export("speed", "100", "Max speed"), Export("label", "'x'", "")]
    assert find_exports(result.output) == result.exports


def test_export_inside_long_string_untouched(tmp_path):
    src = "local s = [[\nx = 1 --export\n]]"
    result = compile_lua(tmp_path, {"src/main.lua": src})
    assert result.output == src
    assert result.exports == []


# ---------------------------
# compile-time helpers
# ---------------------------

def test_embed_file(tmp_path):
    result = compile_lua(tmp_path, {
        "src/main.lua": 'local html = library.embedFile("ui/panel.html")',
        "src/ui/panel.html": "<b>hi</b>",
    })
    assert result.output == "local html = [[<b>hi</b>]]"


def test_embed_file_relative_to_module(tmp_path):
    result = compile_lua(tmp_path, {
        "src/main.lua": 'require("ui/screen")',
        "src/ui/screen.lua": "return library.embedFile('layout.txt')",
        "src/ui/layout.txt": "a]]b",
    })
    assert result.preloads[0].source == "return [=[a]]b]=]"


def test_embed_file_in_comment_untouched(tmp_path):
    src = "-- library.embedFile(anything)\nprint(1)"
    result = compile_lua(tmp_path, {"src/main.lua": src})
    assert result.output == src


@pytest.mark.parametrize("call", [
    "library.embedFile(name)",
    "library.embedFile('a' .. 'b')",
    "library.embedFile()",
    "library.embedFile(42)",
    "library.embedFile('a', 'b')",
])
def test_embed_file_rejects_non_literal_arguments(tmp_path, call):
    err = compile_error(tmp_path, {
        "src/main.lua": f"local name = 'x'\nlocal s = {call}",
        "src/x": "content",
    })
    assert isinstance(err, HelperArgumentError)
    assert err.pos == (2, 1)
    assert "main.lua" in str(err)


def test_embed_file_missing(tmp_path):
    err = compile_error(tmp_path, {"src/main.lua": "local s = library.embedFile('nope.txt')"})
    assert isinstance(err, MissingFileError)
    assert "nope.txt" in str(err)
    assert "main.lua" in str(err)


@pytest.mark.parametrize("content,expected", [
    ("plain", "[[plain]]"),
    ("a]]b", "[=[a]]b]=]"),
    ("x]", "[=[x]]=]"),
    ("]=]]]", "[==[]=]]]]==]"),
    ("\nfirst", "[[\n\nfirst]]"),
])
def test_lua_long_string(content, expected):
    assert lua_long_string(content) == expected


@pytest.mark.parametrize("literal,expected", [
    ('"a\\nb"', "a\nb"),
    ("'\\65\\x42\\u{43}'", "ABC"),
    ("'it\\'s'", "it's"),
    ("[==[\nxy]==]", "xy"),
    ("[[a]]", "a"),
])
def test_lua_string_value(literal, expected):
    assert lua_string_value(literal) == expected


# ---------------------------
# numeric quirk
# ---------------------------

def test_trailing_question_mark_completed(tmp_path, caplog):
    result = compile_lua(tmp_path, {"src/main.lua": "local version = 5?\nprint(version)"})
    assert result.output == "local version = 5.0\nprint(version)"
    assert any("Undefined behavior" in r.getMessage()
               for r in caplog.records if r.levelno == logging.WARNING)


@pytest.mark.parametrize("src", [
    "-- version 5?\nprint(1)",
    "local q = [[\nAre you over 18?\n]]",
    "local q = [==[ 42?\n]==]",
])
def test_trailing_question_mark_outside_code_untouched(tmp_path, caplog, src):
    result = compile_lua(tmp_path, {"src/main.lua": src})
    assert result.output == src
    assert not [r for r in caplog.records if r.levelno == logging.WARNING]


def test_crlf_sources(tmp_path):
    (tmp_path / "src").mkdir(parents=True)
    (tmp_path / "src" / "util.lua").write_bytes(b"local x = 1\r\nreturn x\r\n")
    result = compile_lua(tmp_path, {"src/main.lua": 'require("util")'})
    assert result.preloads[0].source == "local x = 1\nreturn x\n"
