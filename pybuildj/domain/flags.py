from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from returns.result import ResultE, Success

from pybuildj.domain.classpath import Classpath

DEFAULT_JAVA_VERSION = "1.8"
# Java version that switches the compiler from the boot classpath to system modules.
SYSTEM_MODULES_VERSION = "1.9"


@dataclass(frozen=True)
class BuildFlags:
    """Every compile related option of a module, shared by all the stages."""

    javac_flags: str = ""
    dx_flags: str = ""
    boot_classpath: Classpath = field(default_factory=Classpath)
    classpath: Classpath = field(default_factory=Classpath)
    system_modules: Classpath = field(default_factory=Classpath)
    desugar_flags: str = ""
    java_version: str = DEFAULT_JAVA_VERSION

    @property
    def uses_system_modules(self) -> bool:
        return self.java_version == SYSTEM_MODULES_VERSION

    def platform_classpath(self) -> Classpath:
        """The boot classpath or the system modules, never both."""
        if self.uses_system_modules:
            return self.system_modules
        return self.boot_classpath

    def platform_classpath_flag(self, force_empty: bool) -> ResultE[str]:
        if self.uses_system_modules:
            return self.system_modules.java_system_modules(force_empty)
        return Success(self.boot_classpath.java_boot_classpath(force_empty))


def _flag_string(value: str | Iterable[str] | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return " ".join(value)


def _classpath(paths: Iterable[Path | str] | None, base: Path | None) -> Classpath:
    classpath = Classpath.of(paths)
    if base is None:
        return classpath
    return Classpath(tuple(base / entry for entry in classpath))


def build_flags(raw: Mapping[str, Any], base: Path | None = None) -> BuildFlags:
    """Maps a raw module configuration onto `BuildFlags`.

    Nothing is validated here, invalid combinations surface when the stage that
    needs them is declared. Relative classpath entries are resolved against
    `base` when one is given.
    """
    classpath = raw.get("classpath", {})
    return BuildFlags(
        javac_flags=_flag_string(raw.get("javacflags")),
        dx_flags=_flag_string(raw.get("dxflags")),
        desugar_flags=_flag_string(raw.get("desugar_flags")),
        boot_classpath=_classpath(classpath.get("boot"), base),
        classpath=_classpath(classpath.get("libs"), base),
        system_modules=_classpath(classpath.get("system_modules"), base),
        java_version=str(raw.get("java_version", DEFAULT_JAVA_VERSION)),
    )
