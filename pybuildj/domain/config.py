from pathlib import Path
from typing import Any, TypedDict

import toml
from returns.io import IOResultE, impure_safe

from pybuildj.domain.entities import JavaModule, Toolchain
from pybuildj.domain.flags import build_flags

CONFIG_FILE = "pybuildj.toml"


class ClasspathConfig(TypedDict, total=False):
    boot: list[str]
    libs: list[str]
    system_modules: list[str]


class ModuleConfig(TypedDict, total=False):
    name: str
    srcs: list[str]
    srcjars: list[str]
    java_version: str
    javacflags: list[str]
    dxflags: list[str]
    desugar_flags: list[str]
    resource_dirs: list[str]
    manifest: str
    jarjar_rules: str
    installable: bool
    desugar: bool
    errorprone: bool


class Config(TypedDict):
    module: JavaModule
    toolchain: Toolchain


@impure_safe
def load_config_file(config_path: Path) -> dict[str, Any]:
    dic = toml.loads(config_path.read_text())
    dic["module_dir"] = config_path.parent
    return dic


def _glob(directory: Path, patterns: list[str]) -> tuple[Path, ...]:
    # sorted so the response file is stable between runs
    return tuple(
        sorted({file for pattern in patterns for file in directory.glob(pattern)})
    )


def _resources(
    directory: Path, resource_dirs: list[str]
) -> tuple[tuple[str, ...], tuple[Path, ...]]:
    jar_args: list[str] = []
    deps: list[Path] = []
    for resource_dir in map(lambda d: directory / d, resource_dirs):
        jar_args.append(f"-C {resource_dir} -D {resource_dir}")
        deps.extend(sorted(f for f in resource_dir.rglob("*") if f.is_file()))
    return tuple(jar_args), tuple(deps)


def _optional_path(directory: Path, value: str | None) -> Path | None:
    return directory / value if value else None


def create_module(
    directory: Path, module: ModuleConfig, classpath: ClasspathConfig
) -> JavaModule:
    resource_args, resource_deps = _resources(directory, module.get("resource_dirs", []))
    return JavaModule(
        name=module.get("name", directory.absolute().name),
        srcs=_glob(directory, module.get("srcs", ["src/**/*.java"])),
        srcjars=tuple(directory / jar for jar in module.get("srcjars", [])),
        flags=build_flags({**module, "classpath": classpath}, base=directory),
        resource_args=resource_args,
        resource_deps=resource_deps,
        manifest=_optional_path(directory, module.get("manifest")),
        jarjar_rules=_optional_path(directory, module.get("jarjar_rules")),
        installable=module.get("installable", True),
        desugar=module.get("desugar", True),
        errorprone=module.get("errorprone", False),
    )


def parse_config(config: dict[str, Any]) -> Config:
    return {
        "module": create_module(
            config["module_dir"],
            config.get("module", {}),
            config.get("classpath", {}),
        ),
        "toolchain": Toolchain.from_config(config.get("toolchain", {})),
    }


def load_config(config_path: Path) -> IOResultE[Config]:
    return load_config_file(config_path).map(parse_config)
