"""Declares the build steps that turn java sources into a (dex) jar.

Every function returns a `RequiresContextIOResultE` that, once called with a
`ModuleContext`, declares exactly one `PipelineInvocation` to the context's
engine. A failure is returned before anything is declared, so an invalid
configuration never reaches the engine.
"""
from pathlib import Path
from typing import Iterable, Mapping

from returns.context import RequiresContextIOResultE
from returns.io import IOResultE, impure_safe

from pybuildj.domain.classpath import Classpath
from pybuildj.domain.context import ModuleContext
from pybuildj.domain.entities import PipelineInvocation
from pybuildj.domain.errors import MissingToolchainComponentError
from pybuildj.domain.flags import BuildFlags
from pybuildj.domain.rules import DesugarArgs, DxArgs, JarArgs, JarjarArgs, JavacArgs

OPEN_JDK9_JAVA_FLAGS = "--add-opens java.base/java.lang.invoke=ALL-UNNAMED"


def _declare(
    rule_name: str,
    description: str,
    output: Path,
    args: Mapping[str, str],
    inputs: Iterable[Path] = (),
    implicits: Iterable[Path] = (),
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    inputs = tuple(inputs)
    implicits = tuple(implicits)

    def inner(context: ModuleContext):
        rule = context.rules[rule_name]

        def declare(invocation: PipelineInvocation) -> IOResultE[PipelineInvocation]:
            if context.verbose:
                print(f"[pybuildj] declare {rule.name}: {invocation.output}")
            return impure_safe(context.engine.declare)(invocation).map(
                lambda _: invocation
            )

        return RequiresContextIOResultE.from_ioresult(
            IOResultE.from_result(rule.check_args(args))
            .map(
                lambda checked: PipelineInvocation(
                    rule=rule,
                    description=description,
                    output=output,
                    inputs=inputs,
                    implicits=implicits,
                    args=dict(checked),
                )
            )
            .bind(declare)
        )

    return RequiresContextIOResultE.ask().bind(inner)


def _transform_java_to_classes(
    output: Path,
    src_files: Iterable[Path],
    src_jars: Classpath,
    flags: BuildFlags,
    deps: Iterable[Path],
    intermediates_suffix: str,
    description: str,
    rule_name: str,
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    """Compiles `src_files` into a jar of class files.

    `intermediates_suffix` is appended to the intermediate directories so the
    same module can run this twice (plain javac and Error Prone) without the
    outputs colliding.
    """

    def inner(context: ModuleContext):
        implicits = (
            *deps,
            *src_jars,
            *flags.platform_classpath(),
            *flags.classpath,
        )
        return RequiresContextIOResultE.from_result(
            flags.platform_classpath_flag(context.device)
        ).bind(
            lambda boot_classpath: _declare(
                rule_name,
                description,
                output,
                JavacArgs(
                    javac_flags=flags.javac_flags,
                    sourcepath=src_jars.java_sourcepath(),
                    boot_classpath=boot_classpath,
                    classpath=flags.classpath.java_classpath(),
                    out_dir=str(context.path(f"classes{intermediates_suffix}")),
                    anno_dir=str(context.path(f"anno{intermediates_suffix}")),
                    java_version=flags.java_version,
                ),
                inputs=src_files,
                implicits=implicits,
            )
        )

    return RequiresContextIOResultE.ask().bind(inner)


def transform_java_to_classes(
    output: Path,
    src_files: Iterable[Path],
    src_jars: Iterable[Path],
    flags: BuildFlags,
    deps: Iterable[Path] = (),
    intermediates_suffix: str = "",
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    return _transform_java_to_classes(
        output,
        tuple(src_files),
        Classpath.of(src_jars),
        flags,
        tuple(deps),
        intermediates_suffix,
        "javac",
        "javac",
    )


def run_error_prone(
    output: Path,
    src_files: Iterable[Path],
    src_jars: Iterable[Path],
    flags: BuildFlags,
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    """Same as `transform_java_to_classes` with the Error Prone checks enabled."""
    src_files = tuple(src_files)

    def inner(context: ModuleContext):
        if not context.toolchain.error_prone_jar:
            return RequiresContextIOResultE.from_failure(
                MissingToolchainComponentError(
                    "cannot build with Error Prone, missing external/error_prone"
                )
            )
        return _transform_java_to_classes(
            output,
            src_files,
            Classpath.of(src_jars),
            flags,
            (),
            "-errorprone",
            "errorprone",
            "errorprone",
        )

    return RequiresContextIOResultE.ask().bind(inner)


def transform_resources_to_jar(
    output: Path, jar_args: Iterable[str], deps: Iterable[Path] = ()
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    return _declare(
        "jar",
        "jar",
        output,
        JarArgs(jar_args=" ".join(jar_args)),
        implicits=deps,
    )


def transform_jars_to_jar(
    output: Path,
    jars: Iterable[Path],
    manifest: Path | None = None,
    strip_dirs: bool = False,
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    """Merges `jars` in the given order, the merge tool resolves conflicts."""
    jar_args: list[str] = []
    deps: list[Path] = []
    if manifest is not None:
        jar_args.append(f"-m {manifest}")
        deps.append(manifest)
    if strip_dirs:
        jar_args.append("-D")

    return _declare(
        "combine_jar",
        "combine jars",
        output,
        JarArgs(jar_args=" ".join(jar_args)),
        inputs=jars,
        implicits=deps,
    )


def transform_desugar(
    output: Path,
    classes_jar: Path,
    flags: BuildFlags,
    intermediates_suffix: str = "",
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    def inner(context: ModuleContext):
        classpath_flags = (
            *flags.boot_classpath.desugar_boot_classpath(),
            *flags.classpath.desugar_classpath(),
        )
        return _declare(
            "desugar",
            "desugar",
            output,
            DesugarArgs(
                java_flags=OPEN_JDK9_JAVA_FLAGS if context.toolchain.use_openjdk9 else "",
                classpath_flags=" ".join(classpath_flags),
                desugar_flags=flags.desugar_flags,
                dump_dir=str(
                    context.path(f"desugar_dumped_classes{intermediates_suffix}")
                ),
            ),
            inputs=(classes_jar,),
            implicits=(*flags.boot_classpath, *flags.classpath),
        )

    return RequiresContextIOResultE.ask().bind(inner)


def transform_classes_jar_to_dex_jar(
    output: Path,
    classes_jar: Path,
    flags: BuildFlags,
    intermediates_suffix: str = "",
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    """Converts a classes jar to classes*.dex and merges them with the
    resources of the classes jar into a dex jar."""

    def inner(context: ModuleContext):
        return _declare(
            "dx",
            "dx",
            output,
            DxArgs(
                out_dir=str(context.path(f"dex{intermediates_suffix}")),
                dx_flags=flags.dx_flags,
            ),
            inputs=(classes_jar,),
        )

    return RequiresContextIOResultE.ask().bind(inner)


def transform_jarjar(
    output: Path, classes_jar: Path, rules_file: Path
) -> RequiresContextIOResultE[PipelineInvocation, ModuleContext]:
    return _declare(
        "jarjar",
        "jarjar",
        output,
        JarjarArgs(rules_file=str(rules_file)),
        inputs=(classes_jar,),
        implicits=(rules_file,),
    )
