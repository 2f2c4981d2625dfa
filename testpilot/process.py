"""Launching test framework processes."""

import asyncio
import codecs
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Literal, Protocol, TypeAlias

from testpilot.errors import ProcessLaunchFailedError
from testpilot.models.records import Command, RawOutput

log = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024

OutputCallback: TypeAlias = Callable[[Literal["stdout", "stderr"], str], None]


class ProcessLauncher(Protocol):
    """Runs external commands on behalf of the test manager."""

    async def run(
        self, command: Command, on_output: OutputCallback | None = None
    ) -> RawOutput:
        """Run the command to completion and return its output.

        Cancelling the awaiting task must terminate the process.
        """

    def close(self) -> None:
        """Terminate every process still running."""


@dataclass(kw_only=True)
class ProcessRunner:
    """asyncio based process launcher streaming output line by line."""

    encoding: str = "utf-8"
    _processes: set[asyncio.subprocess.Process] = field(
        default_factory=set, init=False, repr=False
    )

    async def run(
        self, command: Command, on_output: OutputCallback | None = None
    ) -> RawOutput:
        log.debug(
            "Launching %s %s (cwd=%s)",
            command.executable,
            " ".join(command.args),
            command.cwd,
        )
        try:
            process = await asyncio.create_subprocess_exec(
                command.executable,
                *command.args,
                cwd=command.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ProcessLaunchFailedError(
                f"Cannot launch '{command.executable}': {e}"
            ) from e

        self._processes.add(process)
        try:
            stdout, stderr = await asyncio.gather(
                self._read_stream(process.stdout, "stdout", on_output),
                self._read_stream(process.stderr, "stderr", on_output),
            )
            exit_code = await process.wait()
        except BaseException:
            log.info("Terminating process %d", process.pid)
            self._kill(process)
            await process.wait()
            raise
        finally:
            self._processes.discard(process)

        log.debug("Process %d exited with %d", process.pid, exit_code)
        return RawOutput(stdout=stdout, stderr=stderr, exit_code=exit_code)

    async def _read_stream(
        self,
        stream: asyncio.StreamReader | None,
        name: Literal["stdout", "stderr"],
        on_output: OutputCallback | None,
    ) -> str:
        if stream is None:
            return ""
        decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        chunks: list[str] = []
        pending = ""
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            chunks.append(text)
            if on_output is not None:
                # Only whole lines go to the callback, however long they are.
                complete, newline, pending = (pending + text).rpartition("\n")
                if newline:
                    for line in complete.split("\n"):
                        on_output(name, f"{line}\n")
            if not data:
                break
        if on_output is not None and pending:
            on_output(name, pending)
        return "".join(chunks)

    def close(self) -> None:
        for process in list(self._processes):
            self._kill(process)
        self._processes.clear()

    @staticmethod
    def _kill(process: asyncio.subprocess.Process) -> None:
        if process.returncode is None:
            try:
                process.kill()
            except ProcessLookupError:
                pass
