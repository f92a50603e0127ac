import logging
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Optional

from .context import ContextStack, Frame
from .errors import CircularRequireError, MissingFileError, NameCollisionError
from .naming import external_name
from .preload import CompileResult, RequireEntry, assemble
from .project import Build, BuildTarget, Project, Variable
from .resolver import Resolver, search_path_from_env
from .transformer import SourceTransformer


class BuildSession:
    """
    State of one (project, build, target) compilation: the context stack,
    the modules required so far and the external names handed out. Nothing
    here is shared between sessions, so independent builds can run side by
    side.
    """

    def __init__(
        self,
        project: Project,
        build: Build,
        target: BuildTarget,
        variables: Optional[Mapping[str, Variable]] = None,
        search_path: Optional[List[str]] = None,
    ):
        self.project = project
        self.build = build
        self.target = target
        self.variables: Dict[str, Variable] = {**target.variables, **(variables or {})}

        libraries = {lib.id: lib for lib in (project.library, *project.libraries)}
        if search_path is None:
            search_path = search_path_from_env()
        self.resolver = Resolver(libraries, search_path)
        self.context = ContextStack(Frame(None, project.source_path, project.library))
        self.transformer = SourceTransformer(self)

        # insertion order is emission order
        self.modules: Dict[str, RequireEntry] = {}
        # one entry per file, however many names reach it
        self.entries_by_path: Dict[Path, RequireEntry] = {}
        self.external_paths: Dict[str, Path] = {}

    def require(self, reference: str) -> Optional[RequireEntry]:
        """
        Resolve, transform and register the module `reference` names.

        Returns None for a reference that resolves to nothing, leaving the
        caller to keep the original text. A missing root file, a require
        loop or an unknown library aborts the build.
        """
        current = self.context.current()
        resolved = self.resolver.resolve(reference, current)

        if resolved is None:
            if self.context.is_root():
                raise MissingFileError(f"Project file missing: {reference}")
            if any(reference.startswith(prefix) for prefix in self.project.internal_paths):
                logging.info(f"Required a game library '{reference}' at file {current.file}")
            else:
                logging.warning(
                    f"Required library '{reference}' at file {current.file} "
                    "was not found anywhere, leaving statement alone..."
                )
            return None

        if self.context.contains(resolved.path):
            raise CircularRequireError(
                f"Files required in a loop at {current.file}: {resolved.path}"
            )

        known = self.entries_by_path.get(resolved.path)
        if known is not None:
            return known

        name = resolved.spec.full_name
        if not self.project.contains_path(resolved.path):
            name = self._external_name(resolved.path)

        is_root = self.context.is_root()
        library = self.resolver.libraries.get(resolved.spec.library)
        logging.info(f"Compiling file: {resolved.path}")
        with self.context.enter(resolved.path, library):
            source = self.transformer.transform(resolved.path.read_text(encoding="utf-8"))

        entry = RequireEntry(name, source)
        if not is_root:
            self.modules[name] = entry
            self.entries_by_path[resolved.path] = entry
        return entry

    def _external_name(self, path: Path) -> str:
        name = external_name(path)
        known = self.external_paths.get(name)
        if known is None:
            self.external_paths[name] = path
            logging.info(f"External path hashed [{name}] -> {path}")
        elif known != path:
            raise NameCollisionError(
                f"External files {known} and {path} both hash to '{name}'"
            )
        return name

    def run(self, reference: Optional[str] = None) -> CompileResult:
        root = self.require(reference or f"{self.project.name}:{self.build.name}")
        return assemble(self.project, self.build, self.target, root, list(self.modules.values()))


def compile_build(
    project: Project,
    build: Build,
    target: BuildTarget,
    variables: Optional[Mapping[str, Variable]] = None,
    search_path: Optional[List[str]] = None,
) -> CompileResult:
    """Compile `build` for `target`; caller `variables` override the target's."""
    return BuildSession(project, build, target, variables, search_path).run()


def compile_require(
    project: Project,
    build: Build,
    reference: str,
    target: BuildTarget,
    variables: Optional[Mapping[str, Variable]] = None,
    search_path: Optional[List[str]] = None,
) -> CompileResult:
    """Compile an arbitrary module reference as if it were the build's root file."""
    return BuildSession(project, build, target, variables, search_path).run(reference)


def compile_project(
    project: Project,
    builds: Optional[Iterable[Build]] = None,
    targets: Optional[Iterable[BuildTarget]] = None,
    variables: Optional[Mapping[str, Variable]] = None,
) -> Iterator[CompileResult]:
    targets = list(targets if targets is not None else project.targets)
    for build in builds if builds is not None else project.builds:
        for target in targets:
            yield compile_build(project, build, target, variables)


def write_result(result: CompileResult) -> Path:
    """Write a compiled build to {outputPath}/{target}/{build}.lua."""
    out = result.project.output_path / result.target.name / f"{result.build.name}.lua"
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(result.render(), encoding="utf-8")
    logging.info(f"Generated {out}")
    return out
