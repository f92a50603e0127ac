import pytest
from lua_test import make_project, run_cli, write_files

from dulua.cli import parse_variable

TWO_TARGETS = [
    {"name": "development", "variables": {"RELEASE": False}},
    {"name": "production", "variables": {"RELEASE": True}},
]

MAIN = """\
local util = require("util")
---@if RELEASE true
print('release')
---@else
print('debug')
---@end
"""


def test_build_writes_one_file_per_target(tmp_path):
    make_project(tmp_path, {"src/main.lua": MAIN, "src/util.lua": "return {}"},
                 targets=TWO_TARGETS)
    proc = run_cli("build", tmp_path)
    assert proc.returncode == 0, proc.stderr

    dev = (tmp_path / "out" / "development" / "main.lua").read_text(encoding="utf-8")
    prod = (tmp_path / "out" / "production" / "main.lua").read_text(encoding="utf-8")
    assert dev.startswith("package.preload['demo:util'] = (function (...) return {}\nend);\n")
    assert "print('debug')" in dev and "print('release')" not in dev
    assert "print('release')" in prod and "print('debug')" not in prod
    assert proc.stdout.count("Generated ") == 2


def test_build_single_target_with_override(tmp_path):
    make_project(tmp_path, {"src/main.lua": MAIN, "src/util.lua": "return {}"},
                 targets=TWO_TARGETS)
    proc = run_cli("build", tmp_path, "--target", "development", "--var", "RELEASE=true")
    assert proc.returncode == 0, proc.stderr
    assert not (tmp_path / "out" / "production").exists()
    dev = (tmp_path / "out" / "development" / "main.lua").read_text(encoding="utf-8")
    assert "print('release')" in dev


def test_build_defaults_to_current_directory(tmp_path):
    make_project(tmp_path, {"src/main.lua": "print(1)"})
    proc = run_cli("build", cwd=tmp_path)
    assert proc.returncode == 0, proc.stderr
    assert (tmp_path / "out" / "development" / "main.lua").read_text(encoding="utf-8") == "print(1)"


# ---------------------------
# ERR cases
# ---------------------------

def test_build_error_exit_code(tmp_path):
    make_project(tmp_path, {
        "src/main.lua": 'require("a")',
        "src/a.lua": 'require("main")',
    })
    proc = run_cli("build", tmp_path)
    assert proc.returncode == 1
    assert proc.stderr.startswith("error: ")
    assert "loop" in proc.stderr
    assert "Traceback" not in proc.stderr


def test_unknown_build_name(tmp_path):
    make_project(tmp_path, {"src/main.lua": "print(1)"})
    proc = run_cli("build", tmp_path, "--build", "nope")
    assert proc.returncode == 1
    assert "Unknown build(s): nope" in proc.stderr


def test_build_selects_named_builds(tmp_path):
    make_project(tmp_path, {"src/main.lua": "print(1)", "src/tool.lua": "print(2)"},
                 builds=[{"name": "main"}, {"name": "tool"}])
    proc = run_cli("build", tmp_path, "--build", "tool")
    assert proc.returncode == 0, proc.stderr
    assert (tmp_path / "out" / "development" / "tool.lua").read_text(encoding="utf-8") == "print(2)"
    assert not (tmp_path / "out" / "development" / "main.lua").exists()


def test_unknown_target_name(tmp_path):
    make_project(tmp_path, {"src/main.lua": "print(1)"})
    proc = run_cli("build", tmp_path, "--target", "staging")
    assert proc.returncode == 1
    assert "Unknown target(s): staging" in proc.stderr


def test_missing_project_file(tmp_path):
    proc = run_cli("build", tmp_path)
    assert proc.returncode == 1
    assert "project file not found" in proc.stderr


def test_debug_shows_traceback(tmp_path):
    proc = run_cli("--debug", "build", tmp_path)
    assert proc.returncode != 0
    assert "Traceback" in proc.stderr
    assert "ProjectConfigError" in proc.stderr


def test_verbose_logs_compiled_files(tmp_path):
    make_project(tmp_path, {"src/main.lua": "print(1)"})
    proc = run_cli("-v", "build", tmp_path)
    assert proc.returncode == 0, proc.stderr
    assert "INFO: Compiling file:" in proc.stderr


# ---------------------------
# check
# ---------------------------

def test_check_reports_syntax_errors(tmp_path):
    write_files(tmp_path, {"good.lua": "print(1)", "bad.lua": "local = 1"})
    proc = run_cli("check", tmp_path / "good.lua")
    assert proc.returncode == 0
    assert proc.stdout.strip().endswith("good.lua: ok")

    proc = run_cli("check", tmp_path / "bad.lua")
    assert proc.returncode == 1
    assert "bad.lua:1:7:" in proc.stderr


# ---------------------------
# --var parsing
# ---------------------------

@pytest.mark.parametrize("text,expected", [
    ("DEBUG=true", ("DEBUG", True)),
    ("LEVEL=3", ("LEVEL", 3)),
    ("MODE=prod", ("MODE", "prod")),
    ('MODE="prod"', ("MODE", "prod")),
    ("LIST=[1]", ("LIST", "[1]")),
    ("EMPTY=", ("EMPTY", "")),
])
def test_parse_variable(text, expected):
    assert parse_variable(text) == expected
