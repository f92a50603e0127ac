# lua_test.py
import json
import os
import subprocess
import sys
import textwrap
from pathlib import Path

import pytest

from dulua.compiler import compile_build
from dulua.errors import CompileError
from dulua.project import Project

REPO_ROOT = Path(__file__).resolve().parents[2]
DULUA_CMD = [sys.executable, "-m", "dulua"]


def write_files(root: Path, files: dict) -> None:
    """Write {relative path: source} under root, dedenting each source."""
    for rel, src in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(src), encoding="utf-8")


def make_project(root: Path, files: dict, *, name="demo", libs=None, builds=None,
                 targets=None, internal_paths=None) -> Project:
    """Lay out a project under root (sources in src/) and load its project.json."""
    root.mkdir(parents=True, exist_ok=True)
    write_files(root, files)
    config = {
        "name": name,
        "sourcePath": "src",
        "outputPath": "out",
        "libs": libs or [],
        "builds": builds or [{"name": "main"}],
        "targets": targets or [{"name": "development"}],
        "internalPaths": internal_paths or [],
    }
    (root / "project.json").write_text(json.dumps(config), encoding="utf-8")
    return Project.load(root)


def compile_lua(root: Path, files: dict, *, preload=True, variables=None,
                search_path=(), target=None, **project_kwargs):
    """Compile build "main" of a throw-away project and return the CompileResult."""
    project = make_project(
        root, files, builds=[{"name": "main", "options": {"preload": preload}}],
        **project_kwargs,
    )
    build_target = project.get_target(target) if target else project.targets[0]
    return compile_build(project, project.builds[0], build_target, variables, list(search_path))


def compile_error(root: Path, files: dict, **kwargs) -> CompileError:
    """Compile expecting a failure and return the raised CompileError."""
    with pytest.raises(CompileError) as info:
        compile_lua(root, files, **kwargs)
    return info.value


def run_cli(*args, cwd=None):
    env = {**os.environ, "PYTHONPATH": str(REPO_ROOT), "LUA_PATH": ""}
    return subprocess.run(
        DULUA_CMD + [str(a) for a in args],
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=env,
        text=True,
    )
