"""Pipeline execution over builtins and external processes."""

from __future__ import annotations

import asyncio
import io
import os
import sys
from contextlib import ExitStack, suppress
from dataclasses import dataclass
from typing import IO, TYPE_CHECKING

from loguru import logger

from pipeshell.commands.registry import BuiltinContext
from pipeshell.core.redirection import RedirectionSpec
from pipeshell.core.types import PipelineStage, StageKind
from pipeshell.errors import RedirectionError, ShellError

if TYPE_CHECKING:
    from pipeshell.session import ShellSession

COPY_CHUNK_SIZE = 64 * 1024
SPAWN_FAILURE_STATUS = 126
LINK_CLOSED_ERRORS = (BrokenPipeError, ConnectionResetError)


@dataclass
class _Link:
    """Producer side of the connection between two adjacent stages.

    External producers hand over a stream reader over their own pipe; builtin
    producers hand over their finished output.
    """

    reader: asyncio.StreamReader | None = None
    transport: asyncio.BaseTransport | None = None
    data: bytes = b""

    def close(self) -> None:
        if self.transport is not None and not self.transport.is_closing():
            self.transport.close()


def write_terminal(data: bytes, *, error: bool = False) -> None:
    """Write raw bytes to the shell's own stdout or stderr."""
    if not data:
        return
    stream = sys.stderr if error else sys.stdout
    stream.flush()
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        stream.write(data.decode("utf-8", errors="replace"))
        stream.flush()
        return
    buffer.write(data)
    buffer.flush()


class Executor:
    """Build and run one pipeline.

    Every stage starts in order. Stage output feeds the next stage through a
    copy task; redirections only touch the last stage. The run ends when all
    processes have exited and every copy has reached end of stream.
    """

    def __init__(self, session: ShellSession) -> None:
        self._session = session

    async def run(self, stages: list[PipelineStage], redirection: RedirectionSpec | None = None) -> int:
        redirection = redirection or RedirectionSpec()
        statuses: list[int | asyncio.Task[int]] = []
        copies: list[asyncio.Task[None]] = []
        processes: list[asyncio.subprocess.Process] = []
        upstream: _Link | None = None

        with ExitStack() as stack:
            stdout_file = self._open_target(stack, redirection.stdout_target, append=redirection.stdout_append)
            stderr_file = self._open_target(stack, redirection.stderr_target, append=redirection.stderr_append)
            try:
                for stage in stages:
                    out_file = stdout_file if stage.is_last else None
                    err_file = stderr_file if stage.is_last else None
                    if stage.kind is StageKind.EXTERNAL:
                        upstream, status = await self._start_external(
                            stage, upstream, out_file, err_file, copies, processes
                        )
                    else:
                        upstream, status = self._run_builtin(stage, upstream, out_file, err_file)
                    statuses.append(status)

                await asyncio.gather(*copies)
                results = [status if isinstance(status, int) else await status for status in statuses]
            finally:
                if upstream is not None:
                    upstream.close()
                for task in copies:
                    if not task.done():
                        task.cancel()
                await self._reap(processes)

        logger.debug("pipeline.done stages={} statuses={}", len(stages), results)
        return results[-1] if results else 0

    @staticmethod
    def _open_target(stack: ExitStack, path: str | None, *, append: bool) -> IO[bytes] | None:
        if path is None:
            return None
        try:
            return stack.enter_context(_open_redirect(path, append=append))
        except RedirectionError as exc:
            logger.debug("redirect.open_failed path={} error={}", path, exc.__cause__)
            write_terminal(f"{exc}\n".encode(), error=True)
            return None

    @staticmethod
    async def _reap(processes: list[asyncio.subprocess.Process]) -> None:
        """Kill and wait for any process a failed run left behind."""
        for process in processes:
            if process.returncode is not None:
                continue
            logger.debug("stage.kill pid={}", process.pid)
            with suppress(ProcessLookupError):
                process.kill()
            await process.wait()

    async def _start_external(
        self,
        stage: PipelineStage,
        upstream: _Link | None,
        stdout_file: IO[bytes] | None,
        stderr_file: IO[bytes] | None,
        copies: list[asyncio.Task[None]],
        processes: list[asyncio.subprocess.Process],
    ) -> tuple[_Link | None, int | asyncio.Task[int]]:
        read_fd: int | None = None
        write_fd: int | None = None
        stdout: IO[bytes] | int | None = stdout_file
        if not stage.is_last:
            read_fd, write_fd = os.pipe()
            stdout = write_fd

        sys.stdout.flush()
        sys.stderr.flush()
        try:
            # argv[0] stays the name the user typed.
            process = await asyncio.create_subprocess_exec(
                stage.name,
                *stage.command.arguments,
                executable=stage.executable,
                stdin=None if upstream is None else asyncio.subprocess.PIPE,
                stdout=stdout,
                stderr=stderr_file,
            )
        except OSError as exc:
            if read_fd is not None:
                os.close(read_fd)
            if upstream is not None:
                upstream.close()
            reason = exc.strerror or str(exc)
            write_terminal(f"shell: {stage.name}: {reason}\n".encode(), error=True)
            return (None if stage.is_last else _Link()), SPAWN_FAILURE_STATUS
        finally:
            if write_fd is not None:
                os.close(write_fd)

        logger.debug("stage.spawn position={} name={} pid={}", stage.position, stage.name, process.pid)
        processes.append(process)
        if upstream is not None:
            copies.append(asyncio.create_task(self._copy(upstream, process.stdin)))

        link = None if read_fd is None else await self._open_link(read_fd)
        return link, asyncio.create_task(process.wait())

    def _run_builtin(
        self,
        stage: PipelineStage,
        upstream: _Link | None,
        stdout_file: IO[bytes] | None,
        stderr_file: IO[bytes] | None,
    ) -> tuple[_Link | None, int]:
        # Builtins never read piped input; closing the link lets the producer see a closed pipe.
        if upstream is not None:
            upstream.close()

        out = io.StringIO()
        err = io.StringIO()
        context = BuiltinContext(
            args=list(stage.command.arguments),
            stdout=out,
            stderr=err,
            session=self._session,
            in_pipeline=not (stage.is_first and stage.is_last),
        )
        if stage.handler is None:
            raise ShellError(f"shell: {stage.name}: builtin has no handler")
        status = stage.handler(context)

        self._deliver(err.getvalue().encode(), stderr_file, error=True)
        output = out.getvalue().encode()
        if not stage.is_last:
            return _Link(data=output), status
        self._deliver(output, stdout_file, error=False)
        return None, status

    @staticmethod
    def _deliver(data: bytes, target: IO[bytes] | None, *, error: bool) -> None:
        if target is None:
            write_terminal(data, error=error)
            return
        if data:
            target.write(data)
            target.flush()

    @staticmethod
    async def _open_link(read_fd: int) -> _Link:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        protocol = asyncio.StreamReaderProtocol(reader)
        transport, _ = await loop.connect_read_pipe(lambda: protocol, os.fdopen(read_fd, "rb", buffering=0))
        return _Link(reader=reader, transport=transport)

    @staticmethod
    async def _copy(link: _Link, sink: asyncio.StreamWriter | None) -> None:
        """Copy one link into a consumer's stdin until end of stream."""
        try:
            if sink is None:
                return
            if link.reader is None:
                if link.data:
                    sink.write(link.data)
                    await sink.drain()
                return
            while chunk := await link.reader.read(COPY_CHUNK_SIZE):
                sink.write(chunk)
                await sink.drain()
        except LINK_CLOSED_ERRORS:
            logger.debug("pipeline.link.closed_early")
        finally:
            link.close()
            if sink is not None:
                sink.close()
                with suppress(*LINK_CLOSED_ERRORS):
                    await sink.wait_closed()


def _open_redirect(path: str, *, append: bool) -> IO[bytes]:
    try:
        return open(path, "ab" if append else "wb")  # noqa: SIM115
    except OSError as exc:
        raise RedirectionError(path) from exc
