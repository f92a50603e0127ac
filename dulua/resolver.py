#!/usr/bin/env python3
"""
resolver.py

Turns a `require` reference ("Library:File" or bare "File") into the file it
names and a canonical module name that is the same no matter how the file
was referenced.
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .context import Frame
from .errors import LibraryNotFoundError
from .project import Library

LUA_EXTENSION = ".lua"


@dataclass(frozen=True)
class ModuleSpec:
    library: Optional[str]
    filename: str

    @classmethod
    def parse(cls, reference: str) -> "ModuleSpec":
        library, sep, filename = reference.replace("\\", "/").partition(":")
        if not sep:
            return cls(None, library)
        return cls(library, filename)

    @property
    def full_name(self) -> str:
        return f"{self.library}:{self.filename}"

    def __str__(self):
        return self.full_name if self.library else self.filename


@dataclass(frozen=True)
class ResolvedModule:
    spec: ModuleSpec
    path: Path


def search_path_from_env(environ: Mapping[str, str] = os.environ) -> List[str]:
    """Directory templates from a LUA_PATH-style variable, e.g. "/opt/lua/?.lua;./?.lua"."""
    return [entry for entry in environ.get("LUA_PATH", "").split(";") if entry]


class Resolver:
    def __init__(self, libraries: Dict[str, Library], search_path: List[str]):
        self.libraries = libraries
        self.search_path = search_path

    def candidates(self, spec: ModuleSpec, frame: Frame) -> List[str]:
        if spec.library is not None:
            library = self.libraries.get(spec.library)
            if library is None:
                raise LibraryNotFoundError(
                    f"Library not found for require '{spec.library}:{spec.filename}'"
                )
            base = library.source_path
        else:
            base = frame.directory

        filename = spec.filename
        if filename.endswith(LUA_EXTENSION):
            filename = filename[:-len(LUA_EXTENSION)]
        templates = [str(base / f"?{LUA_EXTENSION}")] + self.search_path
        return [template.replace("?", filename) for template in templates]

    def resolve(self, reference: str, frame: Frame) -> Optional[ResolvedModule]:
        """
        Find the file a reference names, or None when no candidate exists.
        Raises LibraryNotFoundError for an explicitly named, unknown library.
        """
        spec = ModuleSpec.parse(reference)
        path = next(
            (Path(c) for c in self.candidates(spec, frame) if Path(c).is_file()),
            None,
        )
        if path is None:
            return None
        path = path.resolve()

        library_id = spec.library
        if library_id is None and frame.library is not None:
            library_id = frame.library.id
        library = self.libraries.get(library_id) if library_id else None
        if library is None:
            return ResolvedModule(ModuleSpec(library_id, spec.filename), path)

        relative = os.path.relpath(path, library.source_path).replace(os.sep, "/")
        if relative.endswith(LUA_EXTENSION):
            relative = relative[:-len(LUA_EXTENSION)]
        return ResolvedModule(ModuleSpec(library_id, relative), path)
