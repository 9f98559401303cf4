"""Child supervisor: a piped child process with asynchronous liveness."""

from __future__ import annotations

import enum
import logging
import os
import subprocess
import threading
from dataclasses import dataclass, field
from typing import IO, Callable

logger = logging.getLogger(__name__)

# Seconds to wait for the reaper after a broken pipe
EXIT_GRACE = 1.0


class ChildStatus(enum.Enum):
    """Lifecycle states for the supervised child."""

    NOT_STARTED = "not_started"
    RUNNING = "running"
    EXITED = "exited"  # Process exited on its own
    KILLED = "killed"  # Terminated by us


class ChildSpawnError(Exception):
    """The child could not be started (fork or exec failed)."""

    def __init__(self, program: str, error: OSError) -> None:
        self.program = program
        self.error = error
        reason = error.strerror or str(error)
        super().__init__(f"cannot exec {program}: {reason}")


class ChildTransportError(Exception):
    """A write to the child's input pipe failed or was cut short."""


@dataclass
class ChildSupervisor:
    """A child process whose standard input is a pipe we write lines to.

    Wraps the process with:
    - A unidirectional pipe (we hold the write end, the child's stdin is the read end)
    - A reaper thread blocked in ``wait()`` that clears the liveness flag
    - Exit callbacks, run on the reaper thread, used to wake blocked readers

    Uses subprocess.Popen rather than a bare os.fork so the pipe plumbing,
    descriptor cleanup and exec-failure reporting are handled in one place.
    Standard output and error are inherited unless overridden.
    """

    program: str
    args: list[str] = field(default_factory=list)
    stdout: int | IO | None = None
    stderr: int | IO | None = None

    # Internal state
    _proc: subprocess.Popen | None = field(default=None, init=False)
    _alive: threading.Event = field(default_factory=threading.Event, init=False)
    _status: ChildStatus = field(default=ChildStatus.NOT_STARTED, init=False)
    _exit_code: int | None = field(default=None, init=False)
    _reaper: threading.Thread | None = field(default=None, init=False)
    _on_exit: list[Callable[[ChildSupervisor, int | None], None]] = field(
        default_factory=list, init=False
    )

    def add_exit_callback(
        self, callback: Callable[[ChildSupervisor, int | None], None]
    ) -> None:
        """Register a callback invoked when the child terminates.

        The callback receives (supervisor, exit_code) and runs on the reaper
        thread, so it must only do thread-safe work (set flags, wake readers).
        """
        self._on_exit.append(callback)

    def spawn(self) -> int:
        """Start the child and return the write-end file descriptor of its pipe.

        Raises:
            ChildSpawnError: If the process could not be forked or exec'd.
        """
        if self._status is not ChildStatus.NOT_STARTED:
            raise RuntimeError(f"child {self.program} already started")

        try:
            self._proc = subprocess.Popen(
                [self.program, *self.args],
                stdin=subprocess.PIPE,
                stdout=self.stdout,
                stderr=self.stderr,
                bufsize=0,
            )
        except OSError as e:
            raise ChildSpawnError(self.program, e) from e

        # Flag goes up before the reaper starts so a fast exit is never missed
        self._alive.set()
        self._status = ChildStatus.RUNNING
        self._reaper = threading.Thread(
            target=self._reap,
            name=f"macro-reaper-{self._proc.pid}",
            daemon=True,
        )
        self._reaper.start()

        logger.info(
            "Child started: pid=%d cmd=%s",
            self._proc.pid,
            " ".join([self.program, *self.args]),
        )
        return self.write_fd

    def _reap(self) -> None:
        """Block until the child exits, then drop the liveness flag."""
        assert self._proc is not None
        exit_code = self._proc.wait()
        self._exit_code = exit_code
        self._alive.clear()
        if self._status is ChildStatus.RUNNING:
            self._status = ChildStatus.EXITED
        logger.info("Child %s exited (code=%s)", self.program, exit_code)
        for callback in self._on_exit:
            try:
                callback(self, exit_code)
            except Exception:
                logger.exception("Error in exit callback for %s", self.program)

    def write_line(self, data: bytes) -> None:
        """Write ``data`` to the child's input in full.

        Raises:
            ChildTransportError: On a short write, a broken pipe, or if the
                pipe is already closed. Partial commands cannot be recovered,
                so callers stop relaying rather than retry.
        """
        if self._proc is None or self._proc.stdin is None or self._proc.stdin.closed:
            raise ChildTransportError(f"pipe to {self.program} is closed")
        try:
            sent = os.write(self.write_fd, data)
        except BrokenPipeError as e:
            # The reader is gone; give the reaper a moment so `alive` is current
            self._settle()
            raise ChildTransportError(
                f"write to {self.program} failed: {e.strerror or e}"
            ) from e
        except OSError as e:
            raise ChildTransportError(
                f"write to {self.program} failed: {e.strerror or e}"
            ) from e
        if sent != len(data):
            raise ChildTransportError(
                f"incomplete send to {self.program} ({sent} of {len(data)} bytes)"
            )
        logger.debug("Sent %d bytes to %s: %r", sent, self.program, data)

    def _settle(self) -> None:
        """Wait up to EXIT_GRACE seconds for an exiting child to be reaped."""
        if self._reaper is not None:
            self._reaper.join(EXIT_GRACE)
        logger.debug("Pipe to %s broken, child alive=%s", self.program, self.alive)

    @property
    def write_fd(self) -> int:
        if self._proc is None or self._proc.stdin is None:
            raise RuntimeError(f"child {self.program} not started")
        return self._proc.stdin.fileno()

    @property
    def alive(self) -> bool:
        """Momentary snapshot of the liveness flag."""
        return self._alive.is_set()

    @property
    def status(self) -> ChildStatus:
        return self._status

    @property
    def pid(self) -> int | None:
        return self._proc.pid if self._proc is not None else None

    @property
    def exit_code(self) -> int | None:
        return self._exit_code

    def close(self) -> None:
        """Close our end of the pipe; the child sees end of input."""
        if self._proc is not None and self._proc.stdin is not None:
            try:
                self._proc.stdin.close()
            except OSError as e:
                logger.debug("Closing pipe to %s: %s", self.program, e)

    def wait(self, timeout: float | None = None) -> int | None:
        """Wait for the child to exit and return its exit code."""
        if self._proc is None:
            return None
        if self._reaper is not None:
            self._reaper.join(timeout)
            if self._reaper.is_alive():
                return None
        return self._exit_code

    def kill(self) -> None:
        """Terminate the child and reap it."""
        if self._proc is None or self._status is not ChildStatus.RUNNING:
            return
        self._status = ChildStatus.KILLED
        try:
            self._proc.kill()
            logger.info("Killed child %s (pid=%d)", self.program, self._proc.pid)
        except ProcessLookupError:
            logger.debug("Child already gone: %d", self._proc.pid)
        self.close()
        self.wait()
