"""Input sources: where the relay reads its bytes from.

Two interchangeable front-ends feed the relay:

* ``FdSource`` reads raw bytes from a file descriptor (a script file, a
  pipe, or a terminal in canonical mode).
* ``PromptSource`` reads whole lines through a prompt_toolkit session with
  editing and history.

Both honour the same contract: ``read()`` returns the next chunk of bytes,
``b""`` at end of input, and raises ``InterruptedError`` when ``interrupt()``
was called from another thread while it was blocked.
"""

from __future__ import annotations

import errno
import logging
import os
import select
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, History, InMemoryHistory

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
READ_SIZE = 4096


class InputSource(ABC):
    """A blocking, interruptible producer of input bytes."""

    name: str = "input"
    is_script: bool = False

    @abstractmethod
    def read(self) -> bytes:
        """Return the next bytes, ``b""`` at end of input.

        Raises:
            InterruptedError: The read was woken by ``interrupt()``.
            OSError: Any other read failure.
        """
        ...

    @abstractmethod
    def interrupt(self) -> None:
        """Wake a blocked ``read()``. Safe to call from any thread."""
        ...

    def close(self) -> None:
        """Release the source's resources."""


class FdSource(InputSource):
    """Raw byte source over a file descriptor.

    A self-pipe is watched alongside the data descriptor so another thread
    can break a blocking read without a signal handler.
    """

    def __init__(
        self,
        fd: int,
        name: str = "stdin",
        is_script: bool = False,
        owns_fd: bool = False,
    ) -> None:
        self._fd = fd
        self.name = name
        self.is_script = is_script
        self._owns_fd = owns_fd
        self._wake_r, self._wake_w = os.pipe()
        os.set_blocking(self._wake_w, False)
        self._closed = False
        # Serialises interrupt() from the reaper thread with close()
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path: str | Path, is_script: bool = True) -> FdSource:
        """Open a file for reading and wrap it."""
        fd = os.open(os.fspath(path), os.O_RDONLY)
        return cls(fd, name=os.fspath(path), is_script=is_script, owns_fd=True)

    def read(self) -> bytes:
        if self._closed:
            raise OSError(errno.EBADF, f"{self.name} is closed")
        ready, _, _ = select.select([self._fd, self._wake_r], [], [])
        if self._wake_r in ready:
            self._drain_wake()
            raise InterruptedError(errno.EINTR, f"read from {self.name} interrupted")
        return os.read(self._fd, READ_SIZE)

    def _drain_wake(self) -> None:
        os.set_blocking(self._wake_r, False)
        try:
            while os.read(self._wake_r, 64):
                pass
        except BlockingIOError:
            pass
        finally:
            os.set_blocking(self._wake_r, True)

    def interrupt(self) -> None:
        with self._lock:
            if self._closed:
                return
            try:
                os.write(self._wake_w, b"\0")
            except BlockingIOError:
                # Pipe already full of wake-ups; one is enough
                pass

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            os.close(self._wake_r)
            os.close(self._wake_w)
            if self._owns_fd:
                os.close(self._fd)

    @property
    def fd(self) -> int:
        return self._fd


class PromptSource(InputSource):
    """Line-editing source backed by prompt_toolkit.

    Every read returns one edited line plus its newline. End of input
    (Ctrl-D) reads as ``b""``. ``interrupt()`` aborts the running prompt
    from the calling thread by scheduling ``Application.exit`` on the
    prompt's event loop; an interrupt that lands between prompts is kept
    and aborts the next one as soon as it starts.
    """

    def __init__(
        self,
        prompt: str = "",
        history_file: str | Path | None = None,
        session: PromptSession | None = None,
    ) -> None:
        self.name = "terminal"
        self.is_script = False
        self._prompt = prompt
        if session is None:
            session = PromptSession(history=_make_history(history_file))
        self._session = session
        self._pending = threading.Event()

    def read(self) -> bytes:
        try:
            line = self._session.prompt(self._prompt, pre_run=self._abort)
        except EOFError:
            return b""
        return (line + "\n").encode(ENCODING, errors="surrogateescape")

    def interrupt(self) -> None:
        self._pending.set()
        app = self._session.app
        loop = app.loop
        if app.is_running and loop is not None:
            loop.call_soon_threadsafe(self._abort)

    def _abort(self) -> None:
        if not self._pending.is_set():
            return
        app = self._session.app
        if app.is_running and not app.is_done:
            self._pending.clear()
            app.exit(exception=InterruptedError(errno.EINTR, "prompt interrupted"))


def _make_history(history_file: str | Path | None) -> History:
    if not history_file:
        return InMemoryHistory()
    path = Path(history_file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch(exist_ok=True)
    except OSError as e:
        logger.warning(
            "History file %s unusable (%s), keeping history in memory", path, e
        )
        return InMemoryHistory()
    return FileHistory(str(path))


class SourceSwitcher:
    """Chooses between the script source and the interactive source.

    Reading starts from the script, if there is one, and switches to the
    interactive source exactly once, when the script is exhausted.
    """

    def __init__(
        self, interactive: InputSource, script: InputSource | None = None
    ) -> None:
        self._interactive = interactive
        self._script = script
        self._current = script if script is not None else interactive

    @property
    def current(self) -> InputSource:
        return self._current

    @property
    def in_script(self) -> bool:
        return self._current is self._script

    def switch_to_interactive(self) -> None:
        if not self.in_script:
            return
        assert self._script is not None
        logger.debug(
            "Script %s exhausted, switching to %s",
            self._script.name,
            self._interactive.name,
        )
        self._script.close()
        self._script = None
        self._current = self._interactive

    def interrupt(self) -> None:
        self._current.interrupt()

    def close(self) -> None:
        if self._script is not None:
            self._script.close()
        self._interactive.close()
