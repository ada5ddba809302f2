from pathlib import Path

import pytest
from returns.pipeline import is_successful

from pybuildj.domain.entities import BuildRule, Toolchain
from pybuildj.domain.errors import InvalidRuleArgumentsError
from pybuildj.domain.rules import (
    RuleRegistry,
    default_rules,
    jar_rule,
    javac_rule,
)


@pytest.fixture
def registry() -> RuleRegistry:
    return default_rules(Toolchain(javac="/jdk/bin/javac", soong_zip="/bin/soong_zip"))


def test_registry_holds_every_stage(registry: RuleRegistry):
    assert registry.available() == (
        "combine_jar",
        "desugar",
        "dx",
        "errorprone",
        "jar",
        "jarjar",
        "javac",
    )


def test_registry_rejects_duplicates():
    toolchain = Toolchain()
    with pytest.raises(ValueError, match="Duplicate build rule: jar"):
        RuleRegistry.from_rules([jar_rule(toolchain), jar_rule(toolchain)])


def test_registry_unknown_rule(registry: RuleRegistry):
    with pytest.raises(KeyError, match="Unknown build rule: kotlinc"):
        registry["kotlinc"]


def test_registry_is_read_only(registry: RuleRegistry):
    with pytest.raises(TypeError):
        registry._by_name["jar"] = jar_rule(Toolchain())  # type: ignore[index]


def test_javac_rule_uses_a_response_file(registry: RuleRegistry):
    rule = registry["javac"]

    assert rule.rspfile == "$out.rsp"
    assert rule.rspfile_content == "$in"
    assert rule.command_deps == ("/jdk/bin/javac", "/bin/soong_zip")
    assert rule.params == {
        "javac_flags",
        "sourcepath",
        "boot_classpath",
        "classpath",
        "out_dir",
        "anno_dir",
        "java_version",
    }
    assert rule.command.startswith(
        'rm -rf "$out_dir" "$anno_dir" && mkdir -p "$out_dir" "$anno_dir" && '
    )


def test_check_args_rejects_unknown_and_missing_keys(registry: RuleRegistry):
    rule = registry["jarjar"]

    assert is_successful(rule.check_args({"rules_file": "rules.txt"}))

    result = rule.check_args({"rules": "rules.txt"})
    assert not is_successful(result)
    assert isinstance(result.failure(), InvalidRuleArgumentsError)
    assert "rules_file" in str(result.failure())


def test_render_expands_in_out_and_params():
    rule = BuildRule(
        name="copy",
        command="cp $flags $in $out && echo $$HOME",
        command_deps=(),
        params=frozenset({"flags"}),
    )

    command = rule.render(Path("out/c.jar"), (Path("a.jar"), Path("b.jar")), {"flags": "-f"})

    assert command == "cp -f a.jar b.jar out/c.jar && echo $HOME"


def test_render_rspfile():
    rule = javac_rule(Toolchain())

    path, content = rule.render_rspfile(
        Path("out/classes.jar"), (Path("A.java"), Path("B.java")), {}
    )

    assert path == Path("out/classes.jar.rsp")
    assert content == "A.java B.java"


def test_rspfile_absent_for_plain_rules():
    assert jar_rule(Toolchain()).render_rspfile(Path("o.jar"), (), {}) is None


def test_desugar_rule_escapes_the_dump_dir_subshell(registry: RuleRegistry):
    command = registry["desugar"].render(
        Path("out.jar"),
        (Path("in.jar"),),
        {
            "java_flags": "",
            "classpath_flags": "",
            "desugar_flags": "",
            "dump_dir": "dump",
        },
    )

    assert "-Djdk.internal.lambda.dumpProxyClasses=$(cd dump && pwd)" in command
    assert command.endswith("-i in.jar -o out.jar")


def test_tools_that_cannot_be_found_are_not_dependencies(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
):
    monkeypatch.chdir(tmp_path)

    rule = jar_rule(Toolchain(soong_zip="pybuildj-missing-soong-zip"))

    assert rule.command_deps == ()
    assert rule.command.startswith("pybuildj-missing-soong-zip -jar")
