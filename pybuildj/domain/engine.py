from itertools import chain
from pathlib import Path
from typing import Protocol

from pybuildj.domain.entities import BuildRule, PipelineInvocation


class BuildEngine(Protocol):
    """Accepts rule declarations. Scheduling and execution belong to the engine."""

    def declare(self, invocation: PipelineInvocation) -> None:
        ...


class RecordingEngine:
    def __init__(self):
        self.declared: list[PipelineInvocation] = []

    def declare(self, invocation: PipelineInvocation) -> None:
        self.declared.append(invocation)

    def outputs(self) -> tuple[Path, ...]:
        return tuple(invocation.output for invocation in self.declared)


def _escape_path(path: Path | str) -> str:
    return str(path).replace("$", "$$").replace(" ", "$ ").replace(":", "$:")


def _escape_value(value: str) -> str:
    return value.replace("$", "$$").replace("\n", " ")


class NinjaEngine:
    """Collects declarations and writes them as a ninja build file."""

    def __init__(self):
        self.rules: dict[str, BuildRule] = {}
        self.builds: list[PipelineInvocation] = []

    def declare(self, invocation: PipelineInvocation) -> None:
        self.rules.setdefault(invocation.rule.name, invocation.rule)
        self.builds.append(invocation)

    def _rule_text(self, rule: BuildRule) -> str:
        lines = [f"rule {rule.name}", f"  command = {rule.command}"]
        lines.append("  description = $description")
        if rule.rspfile is not None:
            lines.append(f"  rspfile = {rule.rspfile}")
            lines.append(f"  rspfile_content = {rule.rspfile_content or ''}")
        return "\n".join(lines)

    def _build_text(self, invocation: PipelineInvocation) -> str:
        implicits = tuple(
            chain(
                invocation.implicits,
                invocation.rule.command_deps,
            )
        )
        line = f"build {_escape_path(invocation.output)}: {invocation.rule.name}"
        if invocation.inputs:
            line += " " + " ".join(map(_escape_path, invocation.inputs))
        if implicits:
            line += " | " + " ".join(map(_escape_path, implicits))
        variables = (
            f"  description = {_escape_value(invocation.description)} {invocation.output.name}",
            *(
                f"  {name} = {_escape_value(value)}"
                for name, value in sorted(invocation.args.items())
            ),
        )
        return "\n".join((line, *variables))

    def text(self) -> str:
        return (
            "\n\n".join(
                chain(
                    map(self._rule_text, self.rules.values()),
                    map(self._build_text, self.builds),
                )
            )
            + "\n"
        )

    def write(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.text())
        return path
