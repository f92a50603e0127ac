#!/usr/bin/env python3
"""
preload.py

Serializes the modules gathered during a build. With preloading on, every
module becomes a `package.preload` entry that the script's own `require`
picks up lazily; with it off, modules are evaluated up front into the
`_REQ` table the rewritten code indexes.
"""
from dataclasses import dataclass, field
from typing import List

from .exports import Export, find_exports
from .project import Build, BuildTarget, Project
from .transformer import INLINE_REQUIRE_GLOBAL


@dataclass(frozen=True)
class RequireEntry:
    full_name_with_project: str
    source_code: str


@dataclass(frozen=True)
class Preload:
    path: str
    source: str
    output: str


@dataclass
class CompileResult:
    project: Project
    build: Build
    target: BuildTarget
    output: str
    preloads: List[Preload] = field(default_factory=list)
    inlines: List[Preload] = field(default_factory=list)
    exports: List[Export] = field(default_factory=list)

    def render(self) -> str:
        """The whole build as a single script."""
        parts = [preload.output for preload in self.preloads]
        if self.inlines:
            parts.append(f"local {INLINE_REQUIRE_GLOBAL} = {{}}")
            parts.extend(inline.output for inline in self.inlines)
        parts.append(self.output)
        return "\n".join(parts)


def preload_fragment(entry: RequireEntry) -> str:
    return (
        f"package.preload['{entry.full_name_with_project}'] = "
        f"(function (...) {entry.source_code}\nend);"
    )


def inline_fragment(entry: RequireEntry) -> str:
    key = entry.full_name_with_project
    return (
        f"{INLINE_REQUIRE_GLOBAL}['{key}'] = "
        f"(function (...) {entry.source_code}\nend)('{key}');"
    )


def assemble(project: Project, build: Build, target: BuildTarget,
             root: RequireEntry, modules: List[RequireEntry]) -> CompileResult:
    result = CompileResult(project, build, target, root.source_code)
    if build.options.preload:
        fragment, into = preload_fragment, result.preloads
    else:
        fragment, into = inline_fragment, result.inlines
    for entry in modules:
        into.append(Preload(entry.full_name_with_project, entry.source_code, fragment(entry)))
    result.exports = find_exports(root.source_code)
    return result
