"""Child process supervision: the program macro relays lines to.

The child runs with its standard input connected to a pipe owned by the
supervisor. A reaper thread tracks liveness and wakes the relay when the
child goes away.
"""

from macro.child.supervisor import (
    ChildSpawnError,
    ChildStatus,
    ChildSupervisor,
    ChildTransportError,
)

__all__ = [
    "ChildSpawnError",
    "ChildStatus",
    "ChildSupervisor",
    "ChildTransportError",
]
