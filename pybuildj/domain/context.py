from dataclasses import dataclass, field
from pathlib import Path

from pybuildj.domain.engine import BuildEngine, RecordingEngine
from pybuildj.domain.entities import Toolchain
from pybuildj.domain.rules import RuleRegistry, default_rules


@dataclass(frozen=True)
class ModuleContext:
    """Everything a stage needs besides its own arguments.

    `out` is the module scoped output root every intermediate lives under.
    `device` forces an explicitly empty boot classpath / system modules flag so
    javac never picks up the host defaults.
    """

    out: Path
    toolchain: Toolchain
    rules: RuleRegistry
    engine: BuildEngine = field(default_factory=RecordingEngine)
    device: bool = True
    verbose: bool = False

    @classmethod
    def create(
        cls,
        out: Path,
        toolchain: Toolchain | None = None,
        engine: BuildEngine | None = None,
        device: bool = True,
        verbose: bool = False,
    ) -> "ModuleContext":
        toolchain = toolchain or Toolchain()
        return cls(
            out=out,
            toolchain=toolchain,
            rules=default_rules(toolchain),
            engine=engine if engine is not None else RecordingEngine(),
            device=device,
            verbose=verbose,
        )

    def path(self, *parts: str) -> Path:
        return Path(self.out, *parts)
