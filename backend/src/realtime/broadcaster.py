"""Room-based broadcast on top of a Socket.IO server."""
import logging
from collections.abc import Iterable
from typing import Any

import socketio

logger = logging.getLogger(__name__)


class Broadcaster:
    """
    Room membership and event fan-out for connected clients.

    Every authenticated connection sits in a room named after its user id and
    in one room per server it belongs to, so both users and servers can be used
    as the source of a join/leave. Channel rooms decide who receives channel
    events.

    Room state is per process. Operations on the same room are not serialized:
    two reconciles racing on one room can end in a state neither intended.
    """

    def __init__(self, sio: socketio.AsyncServer, namespace: str = "/") -> None:
        self._sio = sio
        self._namespace = namespace

    @property
    def server(self) -> socketio.AsyncServer:
        """The underlying Socket.IO server."""
        return self._sio

    def subscribers(self, room: str) -> set[str]:
        """Connection ids currently in a room."""
        try:
            return {
                sid for sid, _ in self._sio.manager.get_participants(self._namespace, room)
            }
        except KeyError:
            # Room was never created in this namespace
            return set()

    async def enter(self, sid: str, room: str) -> None:
        """Put one connection in a room."""
        await self._sio.enter_room(sid, room, namespace=self._namespace)

    async def join(self, source_room: str, room: str) -> int:
        """
        Put every connection of source_room in room.

        Returns:
            Number of connections that were joined.
        """
        sids = self.subscribers(source_room)
        for sid in sids:
            await self._sio.enter_room(sid, room, namespace=self._namespace)
        return len(sids)

    async def leave(self, source_room: str, room: str) -> int:
        """
        Remove every connection of source_room from room.

        Returns:
            Number of connections that left.
        """
        sids = self.subscribers(source_room) & self.subscribers(room)
        for sid in sids:
            await self._sio.leave_room(sid, room, namespace=self._namespace)
        return len(sids)

    async def evict(self, room: str) -> None:
        """Remove every connection from a room."""
        await self._sio.close_room(room, namespace=self._namespace)

    async def reconcile(self, room: str, source_rooms: Iterable[str]) -> set[str]:
        """
        Make room contain exactly the connections of source_rooms.

        Implemented as evict-all-then-add rather than a diff, so it is idempotent
        but not atomic: a concurrent emit may briefly reach nobody.

        Returns:
            The resulting subscriber set.
        """
        await self.evict(room)
        for source_room in source_rooms:
            await self.join(source_room, room)
        result = self.subscribers(room)
        logger.debug("room_reconciled room=%s subscribers=%d", room, len(result))
        return result

    async def emit(self, room: str, event: str, payload: Any) -> None:
        """Send an event to every connection in a room."""
        await self._sio.emit(event, payload, room=room, namespace=self._namespace)


_broadcaster: Broadcaster | None = None


def get_broadcaster() -> Broadcaster | None:
    """Get the global broadcaster instance."""
    return _broadcaster


def set_broadcaster(broadcaster: Broadcaster | None) -> None:
    """Set the global broadcaster instance."""
    global _broadcaster  # noqa: PLW0603
    _broadcaster = broadcaster
