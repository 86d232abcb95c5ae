"""
Tests for runtime plugins and the runtime registry.
"""

import sys
from pathlib import Path

import pytest

from lambdakit.models.function import FunctionSpec
from lambdakit.runtimes import NodeJsRuntime, PythonRuntime, RuntimeBase, get_runtime
from lambdakit.runtimes.python import VENDOR_DIR
from lambdakit.services.errors import (
    RuntimeCommandError,
    RuntimeHookNotImplementedError,
    UnknownRuntimeError,
)


def _function(root: Path, handler: str = "handler.handler", runtime: str = "nodejs") -> FunctionSpec:
    root.mkdir(parents=True, exist_ok=True)
    return FunctionSpec(name="fn", handler=handler, runtime=runtime, root_path=root)


class TestRuntimeBase:

    @pytest.mark.asyncio
    async def test_mandatory_hooks_fail_at_call_time(self, tmp_path: Path):
        runtime = RuntimeBase("bare", project_root=tmp_path)
        function = _function(tmp_path / "fn")

        with pytest.raises(RuntimeHookNotImplementedError, match='"bare"'):
            await runtime.run(function)
        with pytest.raises(NotImplementedError):
            await runtime.install_dependencies(tmp_path)

    @pytest.mark.asyncio
    async def test_optional_hooks_default_to_noop(self, tmp_path: Path):
        runtime = RuntimeBase("bare", project_root=tmp_path)
        function = _function(tmp_path / "fn")

        assert await runtime.scaffold(function) is None
        assert await runtime.after_copy_dir(function, tmp_path, "dev", "us-east-1") is None
        assert runtime.get_name() == "bare"
        assert runtime.get_handler(function) == "handler.handler"

    @pytest.mark.asyncio
    async def test_build_delegates_to_packaging(self, tmp_path: Path):
        project = tmp_path / "proj"
        function = _function(project / "back" / "show", handler="show/handler.handler")
        (function.root_path / "handler.js").write_text("")

        manifest = await RuntimeBase("bare", project_root=project).build(function, "dev", "us-east-1")

        assert manifest.archive_names == ["show/handler.js"]

    @pytest.mark.asyncio
    async def test_exec_failure_raises(self, tmp_path: Path):
        runtime = RuntimeBase("bare", project_root=tmp_path)
        with pytest.raises(RuntimeCommandError):
            await runtime._exec(sys.executable, "-c", "import sys; sys.exit(3)", cwd=tmp_path)

    @pytest.mark.asyncio
    async def test_exec_returns_stdout(self, tmp_path: Path):
        runtime = RuntimeBase("bare", project_root=tmp_path)
        out = await runtime._exec(sys.executable, "-c", "print('hi')", cwd=tmp_path)
        assert out.strip() == "hi"


class TestRegistry:

    @pytest.mark.parametrize(
        "name, expected",
        [("nodejs", NodeJsRuntime), ("nodejs18.x", NodeJsRuntime), ("python3.12", PythonRuntime)],
    )
    def test_lookup_by_prefix(self, tmp_path: Path, name, expected):
        runtime = get_runtime(name, project_root=tmp_path)
        assert isinstance(runtime, expected)
        assert runtime.get_name() == name

    def test_each_lookup_returns_new_instance(self, tmp_path: Path):
        assert get_runtime("nodejs", project_root=tmp_path) is not get_runtime("nodejs", project_root=tmp_path)

    def test_unknown_runtime(self, tmp_path: Path):
        with pytest.raises(UnknownRuntimeError):
            get_runtime("cobol", project_root=tmp_path)


class TestNodeJsRuntime:

    @pytest.mark.asyncio
    async def test_scaffold_writes_starter_files_once(self, tmp_path: Path):
        function = _function(tmp_path / "fn")
        (function.root_path / "event.json").write_text('{"keep": true}')

        await NodeJsRuntime(project_root=tmp_path).scaffold(function)

        assert "module.exports.handler" in (function.root_path / "handler.js").read_text()
        assert (function.root_path / "event.json").read_text() == '{"keep": true}'

    @pytest.mark.asyncio
    async def test_install_without_package_json_is_noop(self, tmp_path: Path, monkeypatch):
        runtime = NodeJsRuntime(project_root=tmp_path)
        calls = []

        async def _fake_exec(*args, cwd):
            calls.append(args)
            return ""

        monkeypatch.setattr(runtime, "_exec", _fake_exec)
        await runtime.install_dependencies(tmp_path)
        assert calls == []

        (tmp_path / "package.json").write_text("{}")
        await runtime.install_dependencies(tmp_path)
        assert calls == [("npm", "install", "--production")]


class TestPythonRuntime:

    @pytest.mark.asyncio
    async def test_scaffold_and_run(self, tmp_path: Path):
        function = _function(tmp_path / "fn", runtime="python")
        runtime = PythonRuntime(project_root=tmp_path)

        await runtime.scaffold(function)
        result = await runtime.run(function, {"name": "x"})

        assert result == {"message": "Your function executed successfully!"}
        assert (function.root_path / "requirements.txt").exists()

    @pytest.mark.asyncio
    async def test_after_copy_vendors_requirements(self, tmp_path: Path, monkeypatch):
        runtime = PythonRuntime(project_root=tmp_path)
        dist = tmp_path / "dist"
        (dist / "svc").mkdir(parents=True)
        (dist / "svc" / "requirements.txt").write_text("requests\n")
        calls = []

        async def _fake_exec(*args, cwd):
            calls.append((args, cwd))
            return ""

        monkeypatch.setattr(runtime, "_exec", _fake_exec)
        await runtime.after_copy_dir(_function(tmp_path / "fn"), dist, "dev", "us-east-1")

        assert len(calls) == 1
        args, cwd = calls[0]
        assert cwd == dist / "svc"
        assert args[1:4] == ("-m", "pip", "install")
        assert args[-1] == str(dist / "svc" / VENDOR_DIR)
