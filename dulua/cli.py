import argparse
import json
import logging
import sys
from pathlib import Path

from .compiler import compile_project, write_result
from .errors import CompileError
from .parser import validate
from .project import Project


def parse_variable(assignment: str):
    """NAME=VALUE, with VALUE read as a JSON scalar and kept as text otherwise."""
    name, sep, raw = assignment.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got '{assignment}'")
    try:
        value = json.loads(raw)
    except ValueError:
        value = raw
    if not isinstance(value, (bool, int, float, str)):
        value = raw
    return name, value


def build(args) -> None:
    project = Project.load(args.project)

    builds = project.builds
    if args.build:
        names = list(dict.fromkeys(args.build))
        unknown = [name for name in names if project.get_build(name) is None]
        if unknown:
            raise CompileError(f"Unknown build(s): {', '.join(unknown)}")
        builds = [project.get_build(name) for name in names]

    targets = project.targets
    if args.target:
        names = list(dict.fromkeys(args.target))
        unknown = [name for name in names if project.get_target(name) is None]
        if unknown:
            raise CompileError(f"Unknown target(s): {', '.join(unknown)}")
        targets = [project.get_target(name) for name in names]

    variables = dict(args.var or [])
    for result in compile_project(project, builds, targets, variables):
        out = write_result(result)
        print(f"Generated {out}")


def check(args) -> None:
    for filename in args.files:
        path = Path(filename)
        source = path.read_text(encoding="utf-8")
        try:
            validate(source)
        except CompileError as e:
            raise CompileError(f"{path}:{e}") from None
        print(f"{path}: ok")


def main():
    parser = argparse.ArgumentParser(prog="dulua")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="If set, show full Python traceback on errors"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log every compiled file and resolved module"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_p = subparsers.add_parser("build", help="Compile a project's builds into Lua scripts")
    build_p.add_argument("project", nargs="?", default=".", help="Project directory (holding project.json)")
    build_p.add_argument("--build", action="append", help="Only compile this build (repeatable)")
    build_p.add_argument("--target", action="append", help="Only compile for this target (repeatable)")
    build_p.add_argument("--var", action="append", type=parse_variable, metavar="NAME=VALUE",
                         help="Override a build variable (repeatable)")

    check_p = subparsers.add_parser("check", help="Check Lua files for syntax errors")
    check_p.add_argument("files", nargs="+", help="Lua source files")

    args = parser.parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    try:
        if args.command == "build":
            build(args)
        elif args.command == "check":
            check(args)

    except CompileError as e:
        # If debug, re-raise to see the full traceback
        if args.debug:
            raise
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        if args.debug:
            raise
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
