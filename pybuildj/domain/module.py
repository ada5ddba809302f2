from pathlib import Path

from returns.context import RequiresContextIOResultE

from pybuildj.domain.context import ModuleContext
from pybuildj.domain.entities import JavaModule, PipelineInvocation
from pybuildj.domain.pipeline import (
    run_error_prone,
    transform_classes_jar_to_dex_jar,
    transform_desugar,
    transform_jarjar,
    transform_jars_to_jar,
    transform_java_to_classes,
    transform_resources_to_jar,
)

_Stage = RequiresContextIOResultE[Path, ModuleContext]


def _output(invocation: PipelineInvocation) -> Path:
    return invocation.output


def _error_prone(module: JavaModule) -> _Stage:
    """Runs Error Prone into its own jar, plain javac then depends on that jar so
    the checks run whenever the module builds."""

    def inner(context: ModuleContext):
        if not module.errorprone:
            return RequiresContextIOResultE.from_value(())
        return run_error_prone(
            context.path("classes-errorprone.jar"),
            module.srcs,
            module.srcjars,
            module.flags,
        ).map(lambda invocation: (invocation.output,))

    return RequiresContextIOResultE.ask().bind(inner)


def _compile(module: JavaModule):
    def inner(extra_deps: tuple[Path, ...]) -> _Stage:
        def with_context(context: ModuleContext):
            return transform_java_to_classes(
                context.path("classes-compiled.jar"),
                module.srcs,
                module.srcjars,
                module.flags,
                deps=extra_deps,
            ).map(_output)

        return RequiresContextIOResultE.ask().bind(with_context)

    return inner


def _resources(module: JavaModule):
    def inner(compiled: Path):
        def with_context(context: ModuleContext):
            if not module.resource_args:
                return RequiresContextIOResultE.from_value((compiled,))
            return transform_resources_to_jar(
                context.path("res.jar"), module.resource_args, module.resource_deps
            ).map(lambda invocation: (compiled, invocation.output))

        return RequiresContextIOResultE.ask().bind(with_context)

    return inner


def _combine(module: JavaModule):
    def inner(jars: tuple[Path, ...]) -> _Stage:
        def with_context(context: ModuleContext):
            return transform_jars_to_jar(
                context.path("classes.jar"), jars, manifest=module.manifest
            ).map(_output)

        return RequiresContextIOResultE.ask().bind(with_context)

    return inner


def _jarjar(module: JavaModule):
    def inner(classes: Path) -> _Stage:
        def with_context(context: ModuleContext):
            if module.jarjar_rules is None:
                return RequiresContextIOResultE.from_value(classes)
            return transform_jarjar(
                context.path("classes-jarjar.jar"), classes, module.jarjar_rules
            ).map(_output)

        return RequiresContextIOResultE.ask().bind(with_context)

    return inner


def _desugar(module: JavaModule):
    def inner(classes: Path) -> _Stage:
        def with_context(context: ModuleContext):
            if not (
                context.device
                and module.installable
                and module.desugar
                and not module.flags.uses_system_modules
            ):
                return RequiresContextIOResultE.from_value(classes)
            return transform_desugar(
                context.path("classes-desugar.jar"), classes, module.flags
            ).map(_output)

        return RequiresContextIOResultE.ask().bind(with_context)

    return inner


def _dex(module: JavaModule):
    def inner(classes: Path) -> _Stage:
        def with_context(context: ModuleContext):
            if not (context.device and module.installable):
                return RequiresContextIOResultE.from_value(classes)
            return transform_classes_jar_to_dex_jar(
                context.path("javalib.jar"), classes, module.flags
            ).map(_output)

        return RequiresContextIOResultE.ask().bind(with_context)

    return inner


def build_module(module: JavaModule) -> _Stage:
    """Declares every stage of `module` in order and yields the final jar."""
    return (
        _error_prone(module)
        .bind(_compile(module))
        .bind(_resources(module))
        .bind(_combine(module))
        .bind(_jarjar(module))
        .bind(_desugar(module))
        .bind(_dex(module))
    )
