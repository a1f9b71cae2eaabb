"""Process runner for external tool invocations.

This module handles:
- Spawning one external command (compiler, launcher, image builder)
- Relaying the child's stdout and stderr to the caller's streams
- Optionally relaying the caller's stdin to the child
- Reporting the child's exit status once every relay has drained

Each relay runs in its own thread for the lifetime of the command. The
runner waits for the child to exit, signals the stdin relay through an
event, and joins all relays before returning, so no output is dropped
and no relay outlives its command.
"""

from __future__ import annotations

import codecs
import io
import logging
import os
import selectors
import shlex
import subprocess
import sys
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Any

from cult.errors import ProcessError

logger = logging.getLogger(__name__)

# Bytes read per relay iteration
RELAY_CHUNK_SIZE = 64 * 1024

# Default interval at which the stdin relay re-checks the exit signal (seconds)
STDIN_POLL_INTERVAL = 0.05


@dataclass
class ProcessResult:
    """Result of one external command.

    Attributes:
        command: The argument vector that was executed.
        exit_code: The child's exit status.
        duration: Wall-clock run time in seconds.
    """

    command: list[str]
    exit_code: int
    duration: float

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return shlex.join(self.command)


class _Relay(threading.Thread):
    """Thread that copies one stream to another until end of input."""

    def __init__(self, name: str, target: Any, *args: Any) -> None:
        super().__init__(name=name, target=target, args=args, daemon=True)


class _TextSink:
    """Byte sink that decodes into a text stream with no byte buffer."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")

    def write(self, data: bytes) -> None:
        self._stream.write(self._decoder.decode(data))

    def flush(self) -> None:
        self._stream.flush()


def _binary_sink(stream: IO[Any] | None) -> IO[bytes] | _TextSink | None:
    """Return a byte-level writer for a text or binary stream."""
    if stream is None:
        return None
    buffer = getattr(stream, "buffer", None)
    if buffer is not None:
        stream.flush()
        return buffer
    if isinstance(stream, io.TextIOBase):
        return _TextSink(stream)
    return stream


def _stdin_fileno(stream: IO[Any] | None) -> int | None:
    if stream is None:
        return None
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        # io.UnsupportedOperation is both an OSError and a ValueError
        return None


def _pump_output(
    source: IO[bytes],
    sink: IO[bytes] | _TextSink | None,
    errors: list[str],
) -> None:
    """Forward a child output pipe until EOF.

    A failing sink stops forwarding but the pipe keeps being drained so the
    child never blocks on a full pipe.
    """
    read = getattr(source, "read1", source.read)
    try:
        while chunk := read(RELAY_CHUNK_SIZE):
            if sink is None:
                continue
            try:
                sink.write(chunk)
                sink.flush()
            except (OSError, ValueError) as e:
                errors.append(f"could not relay process output: {e}")
                sink = None
    except OSError as e:
        errors.append(f"could not read process output: {e}")
    finally:
        source.close()


def _pump_input(
    source_fd: int,
    sink: IO[bytes],
    exited: threading.Event,
    poll_interval: float,
    errors: list[str],
) -> None:
    """Forward the caller's input to the child until the child exits.

    Reads only when input is available, so the relay notices the exit
    signal within ``poll_interval`` even if no input ever arrives.
    """
    selector = selectors.DefaultSelector()
    try:
        selector.register(source_fd, selectors.EVENT_READ)
        while not exited.is_set():
            if not selector.select(timeout=poll_interval):
                continue
            data = os.read(source_fd, RELAY_CHUNK_SIZE)
            if not data:
                break
            sink.write(data)
            sink.flush()
    except BrokenPipeError:
        # Child closed its stdin or exited.
        pass
    except (OSError, ValueError) as e:
        errors.append(f"could not relay input: {e}")
    finally:
        selector.close()
        try:
            sink.close()
        except BrokenPipeError:
            pass


def run_process(
    command: Sequence[str | Path],
    cwd: Path | None = None,
    env: dict[str, str] | None = None,
    stdout: IO[Any] | None = None,
    stderr: IO[Any] | None = None,
    stdin: IO[Any] | None = None,
    hide_stderr: bool = False,
    relay_stdin: bool = False,
    poll_interval: float = STDIN_POLL_INTERVAL,
    timeout: float | None = None,
) -> ProcessResult:
    """Run an external command to completion while relaying its streams.

    Args:
        command: Argument vector.
        cwd: Working directory for the child.
        env: Optional environment overrides merged into ``os.environ``.
        stdout: Destination for the child's stdout (default ``sys.stdout``).
        stderr: Destination for the child's stderr (default ``sys.stderr``).
        stdin: Source relayed to the child when ``relay_stdin`` is set
            (default ``sys.stdin``).
        hide_stderr: Discard the child's stderr instead of relaying it.
        relay_stdin: Forward input to the child until it exits.
        poll_interval: How often the stdin relay checks for child exit.
        timeout: Kill the child after this many seconds (None = no limit).

    Returns:
        ProcessResult with the child's real exit status. A non-zero status
        is reported, not raised.

    Raises:
        ProcessError: If the command cannot be spawned, times out, the
            wait is interrupted, or a stream could not be relayed.
    """
    argv = [str(part) for part in command]
    out_sink = _binary_sink(stdout if stdout is not None else sys.stdout)
    err_sink = None if hide_stderr else _binary_sink(
        stderr if stderr is not None else sys.stderr
    )

    stdin_fd: int | None = None
    if relay_stdin:
        stdin_fd = _stdin_fileno(stdin if stdin is not None else sys.stdin)
        if stdin_fd is None:
            logger.debug("No readable stdin to relay; child stdin will be empty")

    child_env: dict[str, str] | None = None
    if env:
        child_env = dict(os.environ)
        child_env.update(env)

    logger.info("Executing: %s", shlex.join(argv))
    if cwd is not None:
        logger.debug("Working directory: %s", cwd)

    started = time.monotonic()
    try:
        process = subprocess.Popen(
            argv,
            cwd=cwd,
            env=child_env,
            stdin=subprocess.PIPE if stdin_fd is not None else subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL if hide_stderr else subprocess.PIPE,
        )
    except OSError as e:
        raise ProcessError(
            f"could not start `{argv[0]}`: {e}",
            code="spawn_failed",
            path=argv[0],
        ) from e

    relay_errors: list[str] = []
    exited = threading.Event()
    relays: list[threading.Thread] = []

    assert process.stdout is not None
    relays.append(
        _Relay("stdout-relay", _pump_output, process.stdout, out_sink, relay_errors)
    )
    if process.stderr is not None:
        relays.append(
            _Relay("stderr-relay", _pump_output, process.stderr, err_sink, relay_errors)
        )
    if stdin_fd is not None and process.stdin is not None:
        relays.append(
            _Relay(
                "stdin-relay",
                _pump_input,
                stdin_fd,
                process.stdin,
                exited,
                poll_interval,
                relay_errors,
            )
        )

    for relay in relays:
        relay.start()

    try:
        exit_code = process.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        process.kill()
        process.wait()
        raise ProcessError(
            f"`{argv[0]}` timed out after {timeout} seconds",
            code="timeout",
            path=argv[0],
        ) from None
    except KeyboardInterrupt:
        process.kill()
        process.wait()
        raise ProcessError(
            f"`{argv[0]}` was interrupted",
            code="interrupted",
            path=argv[0],
        ) from None
    finally:
        exited.set()
        for relay in relays:
            relay.join()

    duration = time.monotonic() - started
    logger.debug("`%s` exited with %d after %.2fs", argv[0], exit_code, duration)

    if relay_errors:
        raise ProcessError(
            f"`{argv[0]}` exited with {exit_code} but its streams were not fully "
            f"relayed: {relay_errors[0]}",
            code="relay_failed",
            path=argv[0],
        )

    return ProcessResult(command=argv, exit_code=exit_code, duration=duration)


__all__ = [
    "RELAY_CHUNK_SIZE",
    "STDIN_POLL_INTERVAL",
    "ProcessResult",
    "run_process",
]
