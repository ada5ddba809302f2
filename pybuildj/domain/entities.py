from dataclasses import dataclass, field, fields
from pathlib import Path
from string import Template
from typing import Any, Mapping

from returns.result import Failure, ResultE, Success

from pybuildj.domain.errors import InvalidRuleArgumentsError
from pybuildj.domain.flags import BuildFlags


@dataclass(frozen=True)
class Toolchain:
    javac: str = "javac"
    java: str = "java"
    soong_zip: str = "soong_zip"
    merge_zips: str = "merge_zips"
    dx: str = "dx"
    desugar_jar: str = "desugar.jar"
    jarjar_jar: str = "jarjar.jar"
    error_prone_jar: str = ""
    error_prone_javac_jar: str = ""
    javac_heap_flags: str = "-J-Xmx2048M"
    common_jdk_flags: str = "-Xmaxerrs 9999999 -encoding UTF-8 -g"
    javac_wrapper: str = ""
    use_openjdk9: bool = False

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "Toolchain":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in config.items() if key in known})

    @property
    def error_prone_cmd(self) -> str:
        return (
            f"{self.java} -Xmx1600M -Xbootclasspath/p:{self.error_prone_javac_jar} "
            f"-cp {self.error_prone_jar} com.google.errorprone.ErrorProneCompiler"
        )


@dataclass(frozen=True)
class BuildRule:
    """A command template registered once and shared by every invocation.

    `$in` and `$out` expand to the inputs and the output of an invocation, every
    other `$name` placeholder must be one of `params`.
    """

    name: str
    command: str
    command_deps: tuple[str, ...]
    params: frozenset[str]
    rspfile: str | None = None
    rspfile_content: str | None = None

    def check_args(self, args: Mapping[str, str]) -> ResultE[Mapping[str, str]]:
        unknown = set(args) - self.params
        missing = self.params - set(args)
        if unknown or missing:
            return Failure(
                InvalidRuleArgumentsError(
                    f"rule '{self.name}': unknown {sorted(unknown)}, missing {sorted(missing)}"
                )
            )
        return Success(args)

    def _variables(
        self, output: Path, inputs: tuple[Path, ...], args: Mapping[str, str]
    ) -> dict[str, str]:
        return {**args, "in": " ".join(map(str, inputs)), "out": str(output)}

    def render(
        self, output: Path, inputs: tuple[Path, ...], args: Mapping[str, str]
    ) -> str:
        return Template(self.command).substitute(self._variables(output, inputs, args))

    def render_rspfile(
        self, output: Path, inputs: tuple[Path, ...], args: Mapping[str, str]
    ) -> tuple[Path, str] | None:
        if self.rspfile is None:
            return None
        variables = self._variables(output, inputs, args)
        return (
            Path(Template(self.rspfile).substitute(variables)),
            Template(self.rspfile_content or "").substitute(variables),
        )


@dataclass(frozen=True)
class PipelineInvocation:
    """One rule declaration handed to the build engine."""

    rule: BuildRule
    description: str
    output: Path
    inputs: tuple[Path, ...] = ()
    implicits: tuple[Path, ...] = ()
    args: Mapping[str, str] = field(default_factory=dict)

    @property
    def command(self) -> str:
        return self.rule.render(self.output, self.inputs, self.args)

    @property
    def rspfile(self) -> tuple[Path, str] | None:
        return self.rule.render_rspfile(self.output, self.inputs, self.args)


@dataclass(frozen=True)
class JavaModule:
    name: str
    srcs: tuple[Path, ...]
    flags: BuildFlags
    srcjars: tuple[Path, ...] = ()
    resource_args: tuple[str, ...] = ()
    resource_deps: tuple[Path, ...] = ()
    manifest: Path | None = None
    jarjar_rules: Path | None = None
    installable: bool = True
    desugar: bool = True
    errorprone: bool = False
