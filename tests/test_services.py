import subprocess
import sys
from pathlib import Path
import zipfile

import pytest
from returns.pipeline import is_successful
from returns.unsafe import unsafe_perform_io

from pybuildj.domain.context import ModuleContext
from pybuildj.domain.entities import Toolchain
from pybuildj.domain.flags import BuildFlags
from pybuildj.domain.pipeline import (
    transform_classes_jar_to_dex_jar,
    transform_jarjar,
    transform_java_to_classes,
    transform_resources_to_jar,
)
from pybuildj.domain.services import execute_all

FAKE_DX = """\
#!/bin/sh
for arg in "$@"; do
  case "$arg" in
    --output=*) out="${arg#--output=}";;
  esac
done
echo dex > "$out/classes.dex"
"""

# Zips every file under -C, leaving out the archive being written.
FAKE_SOONG_ZIP = """\
import sys
import zipfile
from pathlib import Path

args = sys.argv[1:]
out = root = None
while args:
    arg = args.pop(0)
    if arg == "-o":
        out = Path(args.pop(0))
    elif arg == "-C":
        root = Path(args.pop(0))
    elif arg == "-D":
        args.pop(0)
with zipfile.ZipFile(out, "w") as archive:
    for path in sorted(root.rglob("*")):
        if path.is_file() and path.resolve() != out.resolve():
            archive.write(path, path.relative_to(root).as_posix())
"""

# First entry of a name wins, -stripFile patterns match the base name.
FAKE_MERGE_ZIPS = """\
import fnmatch
import sys
import zipfile
from pathlib import PurePosixPath

args = sys.argv[1:]
strip = []
while args[0].startswith("-"):
    flag = args.pop(0)
    if flag == "-stripFile":
        strip.append(args.pop(0))
    elif flag == "-m":
        args.pop(0)
out, *inputs = args
seen = set()
with zipfile.ZipFile(out, "w") as merged:
    for name in inputs:
        with zipfile.ZipFile(name) as archive:
            for entry in archive.namelist():
                base = PurePosixPath(entry).name
                if entry in seen or any(fnmatch.fnmatch(base, p) for p in strip):
                    continue
                seen.add(entry)
                merged.writestr(entry, archive.read(entry))
"""

FAKE_JAVAC = """\
#!/bin/sh
while [ $# -gt 0 ]; do
  case "$1" in
    -d) dir="$2"; shift;;
    @*) rsp="${1#@}";;
  esac
  shift
done
cp "$rsp" "$dir/sources.txt"
"""


def _tool(directory: Path, name: str, script: str) -> str:
    path = directory / name
    if not script.startswith("#!"):
        script = f"#!{sys.executable}\n{script}"
    path.write_text(script)
    path.chmod(0o755)
    return str(path)


@pytest.fixture
def toolchain(tmp_path: Path) -> Toolchain:
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    return Toolchain(
        javac=_tool(bin_dir, "javac", FAKE_JAVAC),
        dx=_tool(bin_dir, "dx", FAKE_DX),
        soong_zip=_tool(bin_dir, "soong_zip", FAKE_SOONG_ZIP),
        merge_zips=_tool(bin_dir, "merge_zips", FAKE_MERGE_ZIPS),
        javac_heap_flags="",
        common_jdk_flags="",
    )


def _entries(path: Path) -> dict[str, bytes]:
    with zipfile.ZipFile(path) as archive:
        return {name: archive.read(name) for name in archive.namelist()}


def _dex(context: ModuleContext, classes_jar: Path) -> dict[str, bytes]:
    output = context.path("javalib.jar")
    transform_classes_jar_to_dex_jar(output, classes_jar, BuildFlags())(context)
    result = execute_all(context.engine.declared)
    assert is_successful(result), unsafe_perform_io(result.failure())
    return _entries(output)


def test_dex_ignores_stale_intermediates(tmp_path: Path, toolchain: Toolchain):
    classes_jar = tmp_path / "classes.jar"
    with zipfile.ZipFile(classes_jar, "w") as archive:
        archive.writestr("com/Hello.class", b"\xca\xfe\xba\xbe")
        archive.writestr("res/strings.txt", "hello\n")
    out = tmp_path / "out"
    stale = out / "dex" / "stale.dex"
    stale.parent.mkdir(parents=True)
    stale.write_text("old")

    with_stale = _dex(ModuleContext.create(out=out, toolchain=toolchain), classes_jar)

    assert not stale.exists()
    assert list(with_stale) == ["classes.dex", "res/strings.txt"]
    assert with_stale["classes.dex"] == b"dex\n"
    assert not [name for name in with_stale if name.endswith(".class")]

    clean_out = tmp_path / "clean"
    clean = _dex(ModuleContext.create(out=clean_out, toolchain=toolchain), classes_jar)
    assert clean == with_stale


def test_javac_reads_sources_from_the_response_file(tmp_path: Path, toolchain: Toolchain):
    context = ModuleContext.create(out=tmp_path / "out", toolchain=toolchain)
    output = context.path("classes.jar")
    sources = [tmp_path / "A.java", tmp_path / "B.java"]
    transform_java_to_classes(output, sources, [], BuildFlags())(context)

    result = execute_all(context.engine.declared)

    assert is_successful(result)
    assert Path(f"{output}.rsp").read_text() == " ".join(map(str, sources))
    assert _entries(output) == {"sources.txt": " ".join(map(str, sources)).encode()}


def test_execute_all_stops_at_the_first_failure(tmp_path: Path, toolchain: Toolchain):
    context = ModuleContext.create(
        out=tmp_path / "out",
        toolchain=Toolchain(java="false", soong_zip=toolchain.soong_zip),
    )
    transform_jarjar(context.path("j.jar"), tmp_path / "c.jar", tmp_path / "r.txt")(
        context
    )
    transform_resources_to_jar(context.path("res.jar"), ["-C", str(tmp_path)])(context)

    result = execute_all(context.engine.declared)

    assert not is_successful(result)
    assert isinstance(
        unsafe_perform_io(result.failure()), subprocess.CalledProcessError
    )
    assert not context.path("res.jar").exists()
