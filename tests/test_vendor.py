"""Tests for vendoring: manifest building, persistence and offline replay."""

import json

import pytest

from netimport_cli.errors import NetworkFailure
from netimport_cli.errors import NoDependenciesFound
from netimport_cli.module_resolution import Resolved
from netimport_cli.module_resolution.identity import vendor_path_for_url
from netimport_cli.runtime import vendor_script

A_URL = "https://example.test/a.js"
B_URL = "https://example.test/b.js"


def _read_manifest(path):
    return json.loads(path.read_text())["imports"]


@pytest.mark.asyncio
async def test_vendor_then_run_offline(make_runtime, remote, offline, project):
    body = "export default 'a';\n"
    remote.add(A_URL, body)
    (project / "main.js").write_text(f'import a from "{A_URL}";\nconsole.log(a);\n')

    manifest_path, error = await vendor_script(make_runtime(mode="vendor"))

    assert error is None
    assert manifest_path == project / "vendor" / "import_map.json"
    imports = _read_manifest(manifest_path)
    assert imports == {A_URL: vendor_path_for_url(A_URL, ".js")}
    assert (project / "vendor" / imports[A_URL]).read_text() == body

    runtime = make_runtime(import_map=manifest_path, fake=offline)
    result = await runtime.transformer.transform("main.js")
    await runtime.cleanup()

    assert result.deps == [str(project / "vendor" / imports[A_URL])]
    assert offline.requests == []


@pytest.mark.asyncio
async def test_manifest_is_pretty_printed(make_runtime, remote, project):
    remote.add(A_URL, "export default 1;\n")
    (project / "main.js").write_text(f'import "{A_URL}";\n')

    manifest_path, _ = await vendor_script(make_runtime(mode="vendor"))

    text = manifest_path.read_text()
    assert text.startswith('{\n  "imports": {\n')
    assert text.endswith("\n")


@pytest.mark.asyncio
async def test_cyclic_remote_imports_terminate(make_runtime, remote, project):
    remote.add(A_URL, 'import b from "./b.js";\nexport default 1;\n')
    remote.add(B_URL, 'import a from "./a.js";\nexport default 2;\n')
    (project / "main.js").write_text(f'import a from "{A_URL}";\n')

    manifest_path, error = await vendor_script(make_runtime(mode="vendor"))

    assert error is None
    assert set(_read_manifest(manifest_path)) == {A_URL, B_URL}
    assert remote.count(A_URL) == 1
    assert remote.count(B_URL) == 1


@pytest.mark.asyncio
async def test_relative_imports_replay_offline(make_runtime, remote, offline, project):
    remote.add(A_URL, 'import b from "./b.js";\nexport default 1;\n')
    remote.add(B_URL, "export default 2;\n")
    (project / "main.js").write_text(f'import a from "{A_URL}";\n')
    manifest_path, _ = await vendor_script(make_runtime(mode="vendor"))
    imports = _read_manifest(manifest_path)

    runtime = make_runtime(import_map=manifest_path, fake=offline)
    a = await runtime.chain.resolve(A_URL)
    b = await runtime.chain.resolve("./b.js", str(a.path))
    await runtime.cleanup()

    assert b == Resolved(project / "vendor" / imports[B_URL])
    assert offline.requests == []


@pytest.mark.asyncio
async def test_alias_recorded_under_its_own_name_and_url(make_runtime, remote, project):
    remote.add(A_URL, "export default 1;\n")
    (project / "main.js").write_text('import pad from "pad";\n')

    manifest_path, _ = await vendor_script(make_runtime(mode="vendor", aliases={"pad": A_URL}))

    relative = vendor_path_for_url(A_URL, ".js")
    assert _read_manifest(manifest_path) == {"pad": relative, A_URL: relative}


@pytest.mark.asyncio
async def test_aliased_module_relative_imports_replay_offline(make_runtime, remote, offline, project):
    a_url = "https://example.test/dir/a.js"
    b_url = "https://example.test/dir/b.js"
    remote.add(a_url, 'import b from "./b.js";\nexport default 1;\n')
    remote.add(b_url, "export default 2;\n")
    (project / "main.js").write_text('import pad from "pad";\n')
    manifest_path, error = await vendor_script(make_runtime(mode="vendor", aliases={"pad": a_url}))
    imports = _read_manifest(manifest_path)
    assert error is None

    # Offline replay without the alias in settings.
    runtime = make_runtime(import_map=manifest_path, fake=offline)
    a = await runtime.chain.resolve("pad")
    b = await runtime.chain.resolve("./b.js", str(a.path))
    await runtime.cleanup()

    assert a == Resolved(project / "vendor" / imports["pad"])
    assert b == Resolved(project / "vendor" / imports[b_url])
    assert offline.requests == []


@pytest.mark.asyncio
async def test_root_relative_imports_are_vendored(make_runtime, remote, project):
    remote.add(A_URL, 'import c from "/lib/c.js";\nexport default 1;\n')
    remote.add("https://example.test/lib/c.js", "export default 3;\n")
    (project / "main.js").write_text(f'import a from "{A_URL}";\n')

    manifest_path, error = await vendor_script(make_runtime(mode="vendor"))

    assert error is None
    assert set(_read_manifest(manifest_path)) == {A_URL, "https://example.test/lib/c.js"}


@pytest.mark.asyncio
async def test_installed_package_is_vendored(make_runtime, project):
    package = project / "node_modules" / "left-pad"
    package.mkdir(parents=True)
    (package / "package.json").write_text('{"name": "left-pad", "main": "index.js"}')
    (package / "index.js").write_text("export default (s) => s;\n")
    (project / "main.js").write_text('import pad from "left-pad";\n')

    manifest_path, _ = await vendor_script(make_runtime(mode="vendor"))

    assert _read_manifest(manifest_path) == {"left-pad": "left-pad/index.js"}
    assert (project / "vendor" / "left-pad" / "index.js").exists()


@pytest.mark.asyncio
async def test_builtins_are_not_vendored(make_runtime, remote, project):
    remote.add(A_URL, "export default 1;\n")
    (project / "main.js").write_text(f'import fs from "node:fs";\nimport a from "{A_URL}";\n')

    manifest_path, _ = await vendor_script(make_runtime(mode="vendor"))

    assert list(_read_manifest(manifest_path)) == [A_URL]


@pytest.mark.asyncio
async def test_script_without_dependencies_fails(make_runtime, project):
    (project / "main.js").write_text("console.log('hello');\n")

    with pytest.raises(NoDependenciesFound):
        await vendor_script(make_runtime(mode="vendor"))

    assert not (project / "vendor" / "import_map.json").exists()


@pytest.mark.asyncio
async def test_fetch_failure_writes_no_manifest(make_runtime, project):
    (project / "main.js").write_text('import a from "https://example.test/missing.js";\n')

    with pytest.raises(NetworkFailure):
        await vendor_script(make_runtime(mode="vendor"))

    assert not (project / "vendor" / "import_map.json").exists()


@pytest.mark.asyncio
async def test_non_fatal_error_still_writes_manifest(make_runtime, remote, project):
    remote.add(A_URL, b"\xff\xfe not utf-8")
    (project / "main.js").write_text(f'import a from "{A_URL}";\n')

    manifest_path, error = await vendor_script(make_runtime(mode="vendor"))

    assert isinstance(error, UnicodeDecodeError)
    assert _read_manifest(manifest_path) == {A_URL: vendor_path_for_url(A_URL, ".js")}


@pytest.mark.asyncio
async def test_vendor_requires_vendor_mode(make_runtime):
    runtime = make_runtime(mode="run")
    with pytest.raises(ValueError):
        await vendor_script(runtime)
    await runtime.cleanup()


def test_vendor_mode_rejects_import_map(make_runtime, project):
    with pytest.raises(ValueError):
        make_runtime(mode="vendor", import_map=project / "vendor" / "import_map.json")
