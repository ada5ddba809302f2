from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from returns.result import Failure, ResultE, Success

from pybuildj.domain.errors import MultipleSystemModulesError

SYSTEM_MODULES_SUFFIX = "lib/modules"


@dataclass(frozen=True)
class Classpath:
    """Ordered list of jars, class directories or module images.

    The order is kept in every rendering, it decides which entry wins when a
    symbol is defined twice.
    """

    entries: tuple[Path, ...] = ()

    @classmethod
    def of(cls, paths: Iterable[Path | str] | None) -> "Classpath":
        return cls(tuple(map(Path, paths or ())))

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def add_paths(self, paths: Iterable[Path]) -> "Classpath":
        return Classpath((*self.entries, *paths))

    def paths(self) -> tuple[Path, ...]:
        return self.entries

    def strings(self) -> tuple[str, ...]:
        return tuple(map(str, self.entries))

    def _joined(self) -> str:
        return ":".join(self.strings())

    def java_sourcepath(self) -> str:
        # Never omitted: javac would otherwise search the classpath for sources.
        if self.entries:
            return f"-sourcepath {self._joined()}"
        return '-sourcepath ""'

    def java_classpath(self) -> str:
        if self.entries:
            return f"-classpath {self._joined()}"
        return ""

    def java_processorpath(self) -> str:
        if self.entries:
            return f"-processorpath {self._joined()}"
        return ""

    def java_boot_classpath(self, force_empty: bool) -> str:
        """Returns `-bootclasspath ""` for an empty list when `force_empty` is
        set, so javac does not fall back to its default boot classpath."""
        if self.entries:
            return f"-bootclasspath {self._joined()}"
        if force_empty:
            return '-bootclasspath ""'
        return ""

    def java_system_modules(self, force_empty: bool) -> ResultE[str]:
        """Renders `--system` for `-source 1.9`.

        A module image set holds at most one entry, anything more is a
        configuration error and nothing is rendered.
        """
        match self.entries:
            case ():
                return Success("--system=none" if force_empty else "")
            case (modules,):
                return Success(
                    f"--system={str(modules).removesuffix(SYSTEM_MODULES_SUFFIX)}"
                )
            case entries:
                return Failure(
                    MultipleSystemModulesError(
                        f"more than one system module: {', '.join(map(str, entries))}"
                    )
                )

    def desugar_boot_classpath(self) -> tuple[str, ...]:
        return tuple(f"--bootclasspath_entry {entry}" for entry in self.entries)

    def desugar_classpath(self) -> tuple[str, ...]:
        return tuple(f"--classpath_entry {entry}" for entry in self.entries)
