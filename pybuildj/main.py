import os
from pathlib import Path
import subprocess
import sys

from returns.io import IOResultE, impure_safe
from returns.pipeline import is_successful
from returns.unsafe import unsafe_perform_io

from pybuildj.args import ArgsConfig, args_parse
from pybuildj.domain.config import CONFIG_FILE, Config, load_config
from pybuildj.domain.context import ModuleContext
from pybuildj.domain.engine import BuildEngine, NinjaEngine, RecordingEngine
from pybuildj.domain.module import build_module
from pybuildj.domain.rules import default_rules
from pybuildj.domain.services import execute_all


def _context(args: ArgsConfig, config: Config, engine: BuildEngine) -> ModuleContext:
    return ModuleContext.create(
        out=args.out or Path(".build"),
        toolchain=config["toolchain"],
        engine=engine,
        device=not args.host,
        verbose=args.verbose,
    )


def _declare_module(args: ArgsConfig, config: Config, engine: BuildEngine):
    module = config["module"]
    print(f"[pybuildj] building '{module.name}'")
    return build_module(module)(_context(args, config, engine))


def build(args: ArgsConfig) -> IOResultE[int]:
    engine = RecordingEngine()
    return (
        load_config(Path(CONFIG_FILE))
        .bind(lambda config: _declare_module(args, config, engine))
        .bind(lambda _: execute_all(engine.declared, args.verbose))
        .map(lambda _: 0)
    )


def ninja(args: ArgsConfig) -> IOResultE[int]:
    engine = NinjaEngine()
    out = args.out or Path(".build")
    return (
        load_config(Path(CONFIG_FILE))
        .bind(lambda config: _declare_module(args, config, engine))
        .bind(lambda _: impure_safe(engine.write)(out / "build.ninja"))
        .map(lambda path: print(f"[pybuildj] wrote '{path}'") or 0)
    )


def rules(args: ArgsConfig) -> IOResultE[int]:
    def show(config: Config) -> int:
        for rule in default_rules(config["toolchain"]).describe():
            print(f"{rule['name']}: {', '.join(rule['params'])}")
            if args.verbose:
                print(f"  {rule['command']}")
        return 0

    return load_config(Path(CONFIG_FILE)).map(show)


def pybuildj(args: ArgsConfig) -> IOResultE[int]:
    if args.out is not None:
        args.out = args.out.absolute()
    os.chdir(args.dir)
    args.dir = Path(".")

    match args.action:
        case "build":
            return build(args)
        case "ninja":
            return ninja(args)
        case "rules":
            return rules(args)
        case action:
            return IOResultE.from_failure(
                NotImplementedError(f"{action} is not implemented yet")
            )


def main(argv: list[str] | None = None) -> int:
    args = args_parse(sys.argv[1:] if argv is None else argv)
    result = pybuildj(args)
    if is_successful(result):
        return unsafe_perform_io(result.unwrap())

    error = unsafe_perform_io(result.failure())
    if isinstance(error, subprocess.CalledProcessError):
        print(f"[pybuildj] Error: '{error.cmd}'")
    else:
        print(f"[pybuildj] Error: {error}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
