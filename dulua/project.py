#!/usr/bin/env python3
"""
project.py

Project configuration consumed by the compiler: the project itself, the
libraries it links against, its builds and its build targets. Everything is
read once from `project.json` and stays immutable during a compilation.
"""
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional, Tuple, Union

from .errors import ProjectConfigError

PROJECT_FILE = "project.json"

Variable = Union[bool, int, float, str]


@dataclass(frozen=True)
class Library:
    id: str
    source_path: Path

    @classmethod
    def load(cls, id: str, path: Path) -> "Library":
        """
        A library directory either carries its own project.json, whose
        sourcePath points at the Lua sources, or is the source root itself.
        """
        path = Path(path).resolve()
        config_file = path / PROJECT_FILE
        if config_file.is_file():
            data = _read_json(config_file)
            return cls(id, (path / data.get("sourcePath", "src")).resolve())
        return cls(id, path)


@dataclass(frozen=True)
class BuildOptions:
    preload: bool = True
    helpers: bool = True
    events: bool = True
    compress: bool = False


@dataclass(frozen=True)
class Build:
    name: str
    options: BuildOptions = field(default_factory=BuildOptions)


@dataclass(frozen=True)
class BuildTarget:
    name: str
    variables: Dict[str, Variable] = field(default_factory=dict)
    minify: bool = False
    handle_errors: bool = True


@dataclass(frozen=True)
class Project:
    name: str
    root: Path
    source_path: Path
    output_path: Path
    internal_paths: Tuple[str, ...] = ()
    libraries: Tuple[Library, ...] = ()
    builds: Tuple[Build, ...] = ()
    targets: Tuple[BuildTarget, ...] = (BuildTarget("development"),)

    @property
    def library(self) -> Library:
        """The project's own sources, seen as a library keyed by the project name."""
        return Library(self.name, self.source_path)

    def contains_path(self, path) -> bool:
        try:
            Path(path).resolve().relative_to(self.root)
        except ValueError:
            return False
        return True

    def get_build(self, name: str) -> Optional[Build]:
        return next((b for b in self.builds if b.name == name), None)

    def get_target(self, name: str) -> Optional[BuildTarget]:
        return next((t for t in self.targets if t.name == name), None)

    @classmethod
    def load(cls, directory) -> "Project":
        root = Path(directory).resolve()
        data = _read_json(root / PROJECT_FILE)

        name = data.get("name")
        if not isinstance(name, str) or not name:
            raise ProjectConfigError(f"{root / PROJECT_FILE}: 'name' must be a non-empty string")

        libraries = []
        for entry in data.get("libs", []):
            if "id" not in entry or "path" not in entry:
                raise ProjectConfigError(f"library entries need an 'id' and a 'path': {entry}")
            libraries.append(Library.load(entry["id"], root / entry["path"]))

        builds = []
        for entry in data.get("builds", []):
            if "name" not in entry:
                raise ProjectConfigError(f"build entries need a 'name': {entry}")
            options = entry.get("options", {})
            builds.append(Build(entry["name"], BuildOptions(
                preload=options.get("preload", True),
                helpers=options.get("helpers", True),
                events=options.get("events", True),
                compress=options.get("compress", False),
            )))

        targets = [
            BuildTarget(
                entry["name"],
                variables=dict(entry.get("variables", {})),
                minify=entry.get("minify", False),
                handle_errors=entry.get("handleErrors", True),
            )
            for entry in data.get("targets", [])
        ]

        return cls(
            name=name,
            root=root,
            source_path=(root / data.get("sourcePath", "src")).resolve(),
            output_path=(root / data.get("outputPath", "out")).resolve(),
            internal_paths=tuple(data.get("internalPaths", [])),
            libraries=tuple(libraries),
            builds=tuple(builds),
            targets=tuple(targets) or (BuildTarget("development"),),
        )


def _read_json(path: Path) -> dict:
    if not path.is_file():
        raise ProjectConfigError(f"project file not found: {path}")
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ProjectConfigError(f"{path}: invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ProjectConfigError(f"{path}: expected a JSON object")
    return data
