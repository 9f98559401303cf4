"""Line relay: assemble input lines and forward them to the child.

The engine reads from a script first (if one was found) and then from the
interactive source, expands aliases, repeats the last command on an empty
line, and stops as soon as the child is gone.
"""

from macro.relay.engine import RelayEngine, RelayOutcome
from macro.relay.line import LineAssembler, LineState
from macro.relay.source import FdSource, InputSource, PromptSource, SourceSwitcher

__all__ = [
    "FdSource",
    "InputSource",
    "LineAssembler",
    "LineState",
    "PromptSource",
    "RelayEngine",
    "RelayOutcome",
    "SourceSwitcher",
]
