import asyncio
import shutil
from pathlib import Path
from typing import Any

import pytest

from pipeshell.commands import BuiltinContext, create_builtin_registry
from pipeshell.config import Settings
from pipeshell.core import executor as executor_module
from pipeshell.core.pipeline import parse_line
from pipeshell.core.types import ParsedCommand, PipelineStage, StageKind
from pipeshell.errors import RedirectionError, ShellError
from pipeshell.session import ShellSession

needs_coreutils = pytest.mark.skipif(
    not all(shutil.which(name) for name in ("cat", "seq", "yes", "head")),
    reason="requires cat, seq, yes and head on PATH",
)


async def _run(session: ShellSession, line: str, timeout: float = 20.0) -> int:
    parsed = parse_line(line)
    stages = session.resolver.build_stages(parsed.commands)
    return await asyncio.wait_for(session.executor.run(stages, parsed.redirection), timeout)


def test_echo_redirect_truncates_then_appends(session: ShellSession, tmp_path: Path) -> None:
    target = tmp_path / "f"
    session.handle_line(f"echo hello > {target}")
    assert target.read_bytes() == b"hello\n"

    session.handle_line(f"echo hello >> {target}")
    assert target.read_bytes() == b"hello\nhello\n"

    session.handle_line(f"echo again 1> {target}")
    assert target.read_bytes() == b"again\n"


def test_external_stdout_and_stderr_redirection(session: ShellSession, make_script, tmp_path: Path) -> None:
    make_script("both", 'echo "out $1"\necho "err $1" >&2')
    session.handle_line("both x > out.txt 2> err.txt")
    session.handle_line("both y >> out.txt 2>> err.txt")

    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "out x\nout y\n"
    assert (tmp_path / "err.txt").read_text(encoding="utf-8") == "err x\nerr y\n"


def test_external_output_reaches_terminal(
    session: ShellSession, make_script, capfd: pytest.CaptureFixture[str]
) -> None:
    make_script("greet", 'echo "hi $1"')
    assert session.handle_line("greet there") == 0
    assert capfd.readouterr().out == "hi there\n"


def test_external_exit_status_is_returned(session: ShellSession, make_script) -> None:
    make_script("fail", "exit 5")
    assert session.handle_line("fail") == 5
    assert not session.exit_requested


def test_unknown_command_reports_and_keeps_session(
    session: ShellSession, capfd: pytest.CaptureFixture[str]
) -> None:
    assert session.handle_line("zzzNotACommand --flag") == 127
    assert capfd.readouterr().out == "zzzNotACommand: command not found\n"
    assert not session.exit_requested

    session.handle_line("echo still here")
    assert capfd.readouterr().out == "still here\n"


def test_unknown_command_in_pipeline_runs_nothing(session: ShellSession, tmp_path: Path) -> None:
    session.handle_line("echo hi > made.txt | zzzNotACommand")
    assert not (tmp_path / "made.txt").exists()


def test_unopenable_target_falls_back_to_terminal(
    session: ShellSession, capfd: pytest.CaptureFixture[str]
) -> None:
    session.handle_line("echo hi > /no/such/dir/f")
    captured = capfd.readouterr()
    assert captured.out == "hi\n"
    assert captured.err == "shell: cannot open '/no/such/dir/f'\n"


def test_open_redirect_raises_redirection_error(tmp_path: Path) -> None:
    with pytest.raises(RedirectionError, match="cannot open") as exc_info:
        executor_module._open_redirect(str(tmp_path / "missing" / "f"), append=False)
    assert exc_info.value.path == str(tmp_path / "missing" / "f")
    assert isinstance(exc_info.value.__cause__, OSError)


def test_builtin_output_feeds_external(session: ShellSession, tmp_path: Path) -> None:
    if shutil.which("cat") is None:
        pytest.skip("requires cat")
    session.handle_line("echo piped words | cat > out.txt")
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "piped words\n"


def test_builtin_ignores_piped_input(session: ShellSession, make_script, tmp_path: Path) -> None:
    make_script("produce", "echo upstream")
    session.handle_line("produce | echo own > out.txt")
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "own\n"


def test_three_stage_prefix_pipeline(session: ShellSession, make_script, tmp_path: Path) -> None:
    make_script("numbers", 'i=1\nwhile [ "$i" -le 200 ]; do echo "$i"; i=$((i + 1)); done')
    make_script("prefix", 'while IFS= read -r line; do printf "%s%s\\n" "$1" "$line"; done')

    session.handle_line("numbers | prefix a: | prefix b: > out.txt")

    expected = "".join(f"b:a:{i}\n" for i in range(1, 201))
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == expected


@needs_coreutils
@pytest.mark.asyncio
async def test_large_stream_is_copied_byte_for_byte(session: ShellSession, tmp_path: Path) -> None:
    await _run(session, "seq 1 200000 | cat | cat > out.txt")
    expected = "".join(f"{i}\n" for i in range(1, 200001))
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == expected


@needs_coreutils
@pytest.mark.asyncio
async def test_consumer_closing_early_stops_producer(session: ShellSession, tmp_path: Path) -> None:
    await _run(session, "yes | head -n 3 > out.txt")
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "y\ny\ny\n"


@needs_coreutils
@pytest.mark.asyncio
async def test_builtin_consumer_closes_infinite_producer(session: ShellSession, tmp_path: Path) -> None:
    status = await _run(session, "yes | echo done > out.txt")
    assert status == 0
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "done\n"


@pytest.mark.asyncio
async def test_last_stage_status_is_pipeline_status(session: ShellSession, make_script) -> None:
    make_script("ok", "exit 0")
    make_script("bad", "exit 7")
    assert await _run(session, "echo x | ok | bad") == 7
    assert await _run(session, "bad | ok") == 0


@pytest.mark.asyncio
async def test_argv0_is_typed_name(session: ShellSession, make_script, monkeypatch: pytest.MonkeyPatch) -> None:
    tool = make_script("tool", "exit 0")
    calls: list[tuple[tuple[Any, ...], dict[str, Any]]] = []
    original = asyncio.create_subprocess_exec

    async def _recording(*args: Any, **kwargs: Any):
        calls.append((args, kwargs))
        return await original(*args, **kwargs)

    monkeypatch.setattr(executor_module.asyncio, "create_subprocess_exec", _recording)
    await _run(session, "tool a b")

    args, kwargs = calls[0]
    assert args == ("tool", "a", "b")
    assert kwargs["executable"] == str(tool)


def test_spawn_failure_is_reported(
    session: ShellSession, bin_dir: Path, tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    broken = bin_dir / "broken"
    broken.write_bytes(b"\x00\x01\x02 not a program")
    broken.chmod(0o755)

    assert session.handle_line("broken") == 126
    assert capfd.readouterr().err.startswith("shell: broken: ")

    session.handle_line("broken | echo after > out.txt")
    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "after\n"


def test_interior_stage_stderr_goes_to_terminal(
    session: ShellSession, make_script, tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    make_script("noisy", "cat\necho complaint >&2")
    session.handle_line("echo data | noisy | noisy > out.txt 2> err.txt")

    assert (tmp_path / "out.txt").read_text(encoding="utf-8") == "data\n"
    assert (tmp_path / "err.txt").read_text(encoding="utf-8") == "complaint\n"
    assert capfd.readouterr().err == "complaint\n"


@pytest.mark.asyncio
async def test_builtin_stage_without_handler_is_rejected(session: ShellSession) -> None:
    stage = PipelineStage(
        command=ParsedCommand(name="ghost"),
        kind=StageKind.BUILTIN,
        position=0,
        is_first=True,
        is_last=True,
    )
    with pytest.raises(ShellError, match="ghost"):
        await session.executor.run([stage])


@pytest.mark.asyncio
async def test_failing_builtin_kills_started_processes(make_script, monkeypatch: pytest.MonkeyPatch) -> None:
    if shutil.which("sleep") is None:
        pytest.skip("requires sleep")
    make_script("linger", "exec sleep 30")
    registry = create_builtin_registry()

    @registry.register(name="boom")
    def boom(context: BuiltinContext) -> int:
        raise RuntimeError("boom")

    session = ShellSession(Settings(), registry=registry)
    started: list[asyncio.subprocess.Process] = []
    original = asyncio.create_subprocess_exec

    async def _recording(*args: Any, **kwargs: Any):
        process = await original(*args, **kwargs)
        started.append(process)
        return process

    monkeypatch.setattr(executor_module.asyncio, "create_subprocess_exec", _recording)
    with pytest.raises(RuntimeError, match="boom"):
        await _run(session, "linger | boom", timeout=10)

    assert len(started) == 1
    assert started[0].returncode is not None
