"""The relay engine: turns input lines into commands for the child."""

from __future__ import annotations

import enum
import logging
from typing import Callable, Protocol

import typer

from macro.alias import Alias, AliasError, AliasTable
from macro.child import ChildTransportError
from macro.relay.line import LineAssembler
from macro.relay.source import ENCODING, SourceSwitcher

logger = logging.getLogger(__name__)

PREFIX = "macro: "


class RelayOutcome(enum.Enum):
    """Why did the relay loop stop?"""

    END_OF_INPUT = "end_of_input"  # Interactive input closed
    EXIT = "exit"  # User typed `exit`
    CHILD_EXITED = "child_exited"  # Child no longer running
    TRANSPORT_ERROR = "transport_error"  # Write to the child failed
    READ_ERROR = "read_error"  # Unrecoverable read failure
    OUT_OF_MEMORY = "out_of_memory"  # Alias definition exhausted memory

    @property
    def clean(self) -> bool:
        return self in (
            RelayOutcome.END_OF_INPUT,
            RelayOutcome.EXIT,
            RelayOutcome.CHILD_EXITED,
        )


class Child(Protocol):
    """What the engine needs from the child supervisor."""

    program: str

    @property
    def alive(self) -> bool: ...

    def write_line(self, data: bytes) -> None: ...


Echo = Callable[..., None]


class RelayEngine:
    """Single-threaded relay loop.

    Reads bytes from the current source, assembles them into lines,
    handles the ``alias``/``unalias``/``exit`` meta-commands, substitutes
    aliases for the command token and forwards everything else to the
    child. An empty line resends the last command sent.

    The child's liveness flag is the only state touched from another
    thread; it is sampled at the top of every iteration and again before
    every line is dispatched.
    """

    def __init__(
        self,
        child: Child,
        sources: SourceSwitcher,
        aliases: AliasTable | None = None,
        max_line_length: int = 1024,
        repeat: bool = True,
        echo: Echo = typer.echo,
    ) -> None:
        self._child = child
        self._sources = sources
        self._aliases = aliases if aliases is not None else AliasTable()
        self._max_line_length = max_line_length
        self._repeat = repeat
        self._echo = echo
        self._assembler = LineAssembler(
            max_length=max_line_length,
            on_overflow=lambda: self._say("line too long, resetting input", err=True),
        )
        self._last_sent = b""

    @property
    def aliases(self) -> AliasTable:
        return self._aliases

    @property
    def last_sent(self) -> bytes:
        return self._last_sent

    def _say(self, message: str, err: bool = False) -> None:
        self._echo(PREFIX + message, err=err)

    # ------------------------------------------------------------------
    # Control loop
    # ------------------------------------------------------------------

    def run(self) -> RelayOutcome:
        """Relay until input ends, the child dies, or a fatal error occurs."""
        while True:
            if not self._child.alive:
                return self._child_gone()

            source = self._sources.current
            try:
                data = source.read()
            except InterruptedError:
                logger.debug("Read from %s interrupted", source.name)
                continue
            except OSError as e:
                self._say(
                    f"error reading from {source.name}: {e.strerror or e}", err=True
                )
                return RelayOutcome.READ_ERROR

            if not data:
                if not self._sources.in_script:
                    self._say("EOF, exiting...")
                    return RelayOutcome.END_OF_INPUT
                pending = self._assembler.take_pending()
                if pending is not None:
                    outcome = self.handle_line(pending)
                    if outcome is not None:
                        return outcome
                self._sources.switch_to_interactive()
                self._last_sent = b""
                continue

            for line in self._assembler.feed(data):
                outcome = self.handle_line(line)
                if outcome is not None:
                    return outcome

    def _child_gone(self) -> RelayOutcome:
        self._say(f"{self._child.program} is no longer running, exiting...")
        return RelayOutcome.CHILD_EXITED

    # ------------------------------------------------------------------
    # Line handling
    # ------------------------------------------------------------------

    def handle_line(self, line: bytes) -> RelayOutcome | None:
        """Act on one completed line. Returns an outcome when the loop must stop."""
        if not self._child.alive:
            return self._child_gone()

        if not line:
            return self._repeat_last()

        text = line.decode(ENCODING, errors="surrogateescape")
        if self._sources.in_script and text.startswith("#"):
            logger.debug('Skipping script comment: "%s"', text)
            return None

        command, _, rest = text.partition(" ")
        if command == "exit":
            logger.debug("exit requested")
            return RelayOutcome.EXIT
        return self.dispatch(command, rest.lstrip(" "))

    def _repeat_last(self) -> RelayOutcome | None:
        if not self._last_sent or not self._repeat:
            logger.debug("Sending newline (1 byte)")
            return self._send(b"\n")
        logger.debug(
            "Resending last command (%d bytes): %r", len(self._last_sent), self._last_sent
        )
        return self._send(self._last_sent)

    def dispatch(self, command: str, rest: str) -> RelayOutcome | None:
        """Expand, interpret or forward a command and its remainder.

        The forwarded line, newline included, may be at most
        ``max_line_length`` bytes; longer lines are reported and dropped.
        """
        logger.debug('cmd="%s"', command)
        expansion = self._aliases.find(command)
        if expansion is not None:
            logger.debug('Expanded cmd="%s" into "%s"', command, expansion)
            command = expansion

        if command == "alias":
            return self._alias(rest)
        if command == "unalias":
            self._unalias(rest)
            return None

        outbound = command + (" " + rest if rest else "") + "\n"
        payload = outbound.encode(ENCODING, errors="surrogateescape")
        if len(payload) > self._max_line_length:
            self._say("line too long, skipping...")
            return None

        outcome = self._send(payload)
        if outcome is None:
            self._last_sent = payload
        return outcome

    def _send(self, payload: bytes) -> RelayOutcome | None:
        try:
            self._child.write_line(payload)
        except ChildTransportError as e:
            logger.debug("Transport failure: %s", e)
            if not self._child.alive:
                return self._child_gone()
            self._say(f"incomplete send ({e}), exiting...", err=True)
            return RelayOutcome.TRANSPORT_ERROR
        return None

    # ------------------------------------------------------------------
    # Meta-commands
    # ------------------------------------------------------------------

    def _alias(self, rest: str) -> RelayOutcome | None:
        logger.debug('alias rest="%s"', rest)
        try:
            result = self._aliases.add(rest)
        except AliasError as e:
            self._say(str(e))
            return None
        except MemoryError:
            self._say("out of memory defining alias")
            return RelayOutcome.OUT_OF_MEMORY

        if isinstance(result, Alias):
            logger.info('Add alias "%s" to mean "%s"', result.name, result.expansion)
        elif result:
            self._echo("macro aliases:")
            for alias in result:
                self._echo(f"\t{alias}")
        else:
            self._say("no aliases defined")
        return None

    def _unalias(self, rest: str) -> None:
        logger.debug('unalias rest="%s"', rest)
        try:
            removed = self._aliases.remove(rest)
        except AliasError as e:
            self._say(str(e))
            return
        self._say(f'removing alias "{removed.name}"')
