"""
Minimal client and resource model for protocol objects.

Events are recorded on the resource instead of being marshaled, so a
client's view of the conversation can be inspected directly.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from wlcolor.core.errors import InvariantError, ProtocolError

logger = logging.getLogger(__name__)

# wl_display.error codes
DISPLAY_ERROR_NO_MEMORY = 2


class Client:
    """A connected client; a protocol error disconnects it."""

    def __init__(self, name: str = "client") -> None:
        self.name = name
        self.resources: List[Resource] = []
        self.error: Optional[ProtocolError] = None

    def __repr__(self) -> str:
        return f"<Client '{self.name}'>"

    @property
    def disconnected(self) -> bool:
        return self.error is not None

    def disconnect(self, error: ProtocolError) -> None:
        if self.error is None:
            self.error = error
        logger.debug("Disconnecting client '%s': %s", self.name, error)
        self.destroy()

    def destroy(self) -> None:
        """Destroy every resource, newest first."""

        for res in reversed(list(self.resources)):
            res.destroy()


class Resource:
    """
    A protocol object owned by one client.

    Subclasses override :meth:`_destroy` for their destructor; it runs
    exactly once, whether the client asks for it or gets disconnected.
    """

    interface = "wl_resource"

    def __init__(self, client: Client, version: int = 1) -> None:
        if client.disconnected:
            raise InvariantError(f"creating {self.interface} for a disconnected client")
        self.client = client
        self.version = version
        self.events: List[Tuple[str, Tuple[Any, ...]]] = []
        self.destroyed = False
        client.resources.append(self)

    def __repr__(self) -> str:
        return f"<{self.interface}{' destroyed' if self.destroyed else ''}>"

    def send(self, name: str, *args: Any) -> None:
        if self.destroyed:
            raise InvariantError(f"sending {self.interface}.{name} on a destroyed object")
        self.events.append((name, args))

    def event_names(self) -> List[str]:
        return [name for name, _ in self.events]

    def post_error(self, code: int, message: str) -> None:
        """Raise a protocol error on this object and disconnect its client."""

        error = ProtocolError(self, code, message)
        self.client.disconnect(error)
        raise error

    def post_no_memory(self) -> None:
        error = ProtocolError(self, DISPLAY_ERROR_NO_MEMORY, "no memory")
        self.client.disconnect(error)
        raise error

    def destroy(self) -> None:
        if self.destroyed:
            return
        self.destroyed = True
        self.client.resources = [r for r in self.client.resources if r is not self]
        self._destroy()

    def _destroy(self) -> None:
        pass
