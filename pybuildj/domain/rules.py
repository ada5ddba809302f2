from dataclasses import dataclass
from pathlib import Path
import shutil
from types import MappingProxyType
from typing import Any, Iterable, Mapping, TypedDict

from pybuildj.domain.entities import BuildRule, Toolchain


class JavacArgs(TypedDict):
    javac_flags: str
    sourcepath: str
    boot_classpath: str
    classpath: str
    out_dir: str
    anno_dir: str
    java_version: str


class JarArgs(TypedDict):
    jar_args: str


class DesugarArgs(TypedDict):
    java_flags: str
    classpath_flags: str
    desugar_flags: str
    dump_dir: str


class DxArgs(TypedDict):
    out_dir: str
    dx_flags: str


class JarjarArgs(TypedDict):
    rules_file: str


def _resolve_tool(tool: str) -> str | None:
    if not tool:
        return None
    if Path(tool).is_absolute():
        return tool
    if found := shutil.which(tool):
        return str(Path(found).absolute())
    if Path(tool).is_file():
        return str(Path(tool).absolute())
    return None


def _tool_deps(*tools: str) -> tuple[str, ...]:
    """Absolute paths of the tools a command runs, tools that cannot be found
    are left out so the engine does not wait for a file nobody builds."""
    return tuple(filter(None, map(_resolve_tool, tools)))


def _params(args: type) -> frozenset[str]:
    return frozenset(args.__required_keys__)  # type: ignore[attr-defined]


@dataclass(frozen=True)
class RuleRegistry:
    _by_name: Mapping[str, BuildRule]

    @classmethod
    def from_rules(cls, rules: Iterable[BuildRule]) -> "RuleRegistry":
        entries: dict[str, BuildRule] = {}
        for rule in rules:
            if rule.name in entries:
                raise ValueError(f"Duplicate build rule: {rule.name}")
            entries[rule.name] = rule
        return cls(_by_name=MappingProxyType(entries))

    def __getitem__(self, name: str) -> BuildRule:
        try:
            return self._by_name[name]
        except KeyError:
            raise KeyError(f"Unknown build rule: {name}") from None

    def available(self) -> tuple[str, ...]:
        return tuple(sorted(self._by_name))

    def describe(self) -> tuple[dict[str, Any], ...]:
        return tuple(
            {
                "name": rule.name,
                "command": rule.command,
                "command_deps": list(rule.command_deps),
                "params": sorted(rule.params),
            }
            for rule in sorted(self._by_name.values(), key=lambda r: r.name)
        )


def _compile_command(compiler: str, toolchain: Toolchain) -> str:
    # javac writes one .class per (inner) class, so the output directory is
    # listed into a jar instead of declaring the class files themselves.
    return (
        'rm -rf "$out_dir" "$anno_dir" && mkdir -p "$out_dir" "$anno_dir" && '
        f"{compiler} "
        "$javac_flags $sourcepath $boot_classpath $classpath "
        "-source $java_version -target $java_version "
        "-d $out_dir -s $anno_dir @$out.rsp && "
        f"{toolchain.soong_zip} -jar -o $out -C $out_dir -D $out_dir"
    )


def javac_rule(toolchain: Toolchain) -> BuildRule:
    return BuildRule(
        name="javac",
        command=_compile_command(
            f"{toolchain.javac_wrapper}{toolchain.javac} "
            f"{toolchain.javac_heap_flags} {toolchain.common_jdk_flags}",
            toolchain,
        ),
        command_deps=_tool_deps(toolchain.javac, toolchain.soong_zip),
        params=_params(JavacArgs),
        rspfile="$out.rsp",
        rspfile_content="$in",
    )


def errorprone_rule(toolchain: Toolchain) -> BuildRule:
    return BuildRule(
        name="errorprone",
        command=_compile_command(toolchain.error_prone_cmd, toolchain),
        command_deps=_tool_deps(
            toolchain.java,
            toolchain.error_prone_javac_jar,
            toolchain.error_prone_jar,
            toolchain.soong_zip,
        ),
        params=_params(JavacArgs),
        rspfile="$out.rsp",
        rspfile_content="$in",
    )


def jar_rule(toolchain: Toolchain) -> BuildRule:
    return BuildRule(
        name="jar",
        command=f"{toolchain.soong_zip} -jar -o $out $jar_args",
        command_deps=_tool_deps(toolchain.soong_zip),
        params=_params(JarArgs),
    )


def combine_jar_rule(toolchain: Toolchain) -> BuildRule:
    return BuildRule(
        name="combine_jar",
        command=f"{toolchain.merge_zips} -j $jar_args $out $in",
        command_deps=_tool_deps(toolchain.merge_zips),
        params=_params(JarArgs),
    )


def desugar_rule(toolchain: Toolchain) -> BuildRule:
    return BuildRule(
        name="desugar",
        command=(
            "rm -rf $dump_dir && mkdir -p $dump_dir && "
            f"{toolchain.java} "
            "-Djdk.internal.lambda.dumpProxyClasses=$$(cd $dump_dir && pwd) "
            "$java_flags "
            f"-jar {toolchain.desugar_jar} $classpath_flags $desugar_flags "
            "-i $in -o $out"
        ),
        command_deps=_tool_deps(toolchain.desugar_jar),
        params=_params(DesugarArgs),
    )


def dx_rule(toolchain: Toolchain) -> BuildRule:
    # The dex files of one jar are not predictably named, the output directory
    # is recreated on every run.
    return BuildRule(
        name="dx",
        command=(
            'rm -rf "$out_dir" && mkdir -p "$out_dir" && '
            f"{toolchain.dx} --dex --output=$out_dir $dx_flags $in && "
            f"{toolchain.soong_zip} -o $out_dir/classes.dex.jar -C $out_dir -D $out_dir && "
            f'{toolchain.merge_zips} -D -stripFile "*.class" $out $out_dir/classes.dex.jar $in'
        ),
        command_deps=_tool_deps(toolchain.dx, toolchain.soong_zip, toolchain.merge_zips),
        params=_params(DxArgs),
    )


def jarjar_rule(toolchain: Toolchain) -> BuildRule:
    return BuildRule(
        name="jarjar",
        command=f"{toolchain.java} -jar {toolchain.jarjar_jar} process $rules_file $in $out",
        command_deps=_tool_deps(toolchain.java, toolchain.jarjar_jar),
        params=_params(JarjarArgs),
    )


def default_rules(toolchain: Toolchain) -> RuleRegistry:
    return RuleRegistry.from_rules(
        rule(toolchain)
        for rule in (
            javac_rule,
            errorprone_rule,
            jar_rule,
            combine_jar_rule,
            desugar_rule,
            dx_rule,
            jarjar_rule,
        )
    )
