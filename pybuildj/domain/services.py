from collections.abc import Iterable
import subprocess

from returns.io import IOResultE, impure_safe

from pybuildj.domain.entities import PipelineInvocation


def _write_rspfile(invocation: PipelineInvocation) -> None:
    rspfile = invocation.rspfile
    if rspfile is not None:
        path, content = rspfile
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@impure_safe
def execute(
    invocation: PipelineInvocation, verbose: bool = False
) -> PipelineInvocation:
    """Runs one declared invocation right away, in the current directory."""
    print(f"[pybuildj] {invocation.description}: {invocation.output}")
    invocation.output.parent.mkdir(parents=True, exist_ok=True)
    _write_rspfile(invocation)
    if verbose:
        print(invocation.command)
    subprocess.run(invocation.command, shell=True, check=True)
    return invocation


def execute_all(
    invocations: Iterable[PipelineInvocation], verbose: bool = False
) -> IOResultE[tuple[PipelineInvocation, ...]]:
    """Runs the invocations in declaration order and stops at the first failure."""
    result: IOResultE[tuple[PipelineInvocation, ...]] = IOResultE.from_value(())
    for invocation in invocations:
        result = result.bind(
            lambda done, invocation=invocation: execute(invocation, verbose).map(
                lambda ran: (*done, ran)
            )
        )
    return result
