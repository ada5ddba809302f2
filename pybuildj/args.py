from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Protocol
import argparse

from pybuildj.types import Action

try:
    __version__ = version("pybuildj")
except PackageNotFoundError:
    __version__ = "0.0.0"


class ArgsConfig(Protocol):
    action: Action
    dir: Path
    out: Path | None
    host: bool
    verbose: bool


def args_parse(argv: list[str]) -> ArgsConfig:
    parser = argparse.ArgumentParser(
        prog="pybuildj",
        description="Declares and runs the build steps of a Java module",
        epilog="",
    )
    parser.add_argument("-d", "--dir", type=Path, default=Path.cwd())
    parser.add_argument("-o", "--out", type=Path, default=None)
    parser.add_argument(
        "--host",
        action="store_true",
        help="do not force an empty boot classpath or system modules",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=__version__)

    subparser = parser.add_subparsers(dest="action", required=True)
    subparser.add_parser("build", help="declare and run every stage")
    subparser.add_parser("ninja", help="write the stages to build.ninja")
    subparser.add_parser("rules", help="list the registered rules")

    return parser.parse_args(argv)  # type: ignore
