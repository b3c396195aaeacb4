"""Client registry and notification fan-out."""
import uuid

import structlog

from mdserve.reload.sink import ClientClosedError, ClientSink
from mdserve.reload.types import ReloadEvent, ReloadEventType, now_ms

logger = structlog.get_logger()


class Client:
    """A streaming connection interested in one file.

    Attributes:
        id: Unique connection identifier.
        file_path: Absolute path the client watches.
        sink: Output channel frames are pushed to.
        last_update: Epoch milliseconds of the last successful push.
    """

    def __init__(
        self,
        file_path: str,
        sink: ClientSink,
        client_id: str | None = None,
    ) -> None:
        """Initialize client.

        Args:
            file_path: Absolute path the client watches.
            sink: Output channel for frames.
            client_id: Connection identifier. Generated if None.
        """
        self.id = client_id or str(uuid.uuid4())
        self.file_path = file_path
        self.sink = sink
        self.last_update = 0

    def __repr__(self) -> str:
        return f"Client(id={self.id!r}, file_path={self.file_path!r})"


class ClientRegistry:
    """Multi-map from absolute path to the clients streaming it.

    Not thread-safe. All calls must come from the event loop thread.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._clients: dict[str, dict[str, Client]] = {}

    def paths(self) -> list[str]:
        """Paths that currently have at least one registered client set."""
        return list(self._clients)

    def client_count(self, path: str | None = None) -> int:
        """Count registered clients.

        Args:
            path: Restrict the count to one path. Counts all paths if None.

        Returns:
            Number of registered clients.
        """
        if path is not None:
            return len(self._clients.get(path, {}))
        return sum(len(clients) for clients in self._clients.values())

    def register(self, path: str, client: Client) -> None:
        """Add a client and send it its connected event.

        Args:
            path: Absolute path the client watches.
            client: Client to register.
        """
        self._clients.setdefault(path, {})[client.id] = client
        logger.debug("reload_client_registered", client_id=client.id, path=path)
        self._push(client, ReloadEvent(type=ReloadEventType.CONNECTED, file_path=path).to_json())

    def deregister(self, client_id: str) -> str | None:
        """Remove a client by id.

        Args:
            client_id: Identifier of the client to remove.

        Returns:
            The path the client was registered under, or None if not found.
        """
        for path, clients in self._clients.items():
            if client_id in clients:
                del clients[client_id]
                if not clients:
                    del self._clients[path]
                logger.debug("reload_client_deregistered", client_id=client_id, path=path)
                return path
        return None

    def notify(
        self,
        path: str,
        event_type: ReloadEventType,
        message: str | None = None,
    ) -> int:
        """Push one event to every client of a path.

        Clients whose sink is closed are pruned. An emptied client set is
        left in place for the caller to notice.

        Args:
            path: Absolute path the event is about.
            event_type: Event kind.
            message: Error description for error events.

        Returns:
            Number of clients the event was delivered to.
        """
        clients = self._clients.get(path)
        if not clients:
            return 0

        frame = ReloadEvent(type=event_type, file_path=path, message=message).to_json()
        delivered = 0
        for client_id, client in list(clients.items()):
            if self._push(client, frame):
                delivered += 1
            else:
                clients.pop(client_id, None)
                logger.debug("reload_client_pruned", client_id=client_id, path=path)

        logger.info(
            "reload_clients_notified",
            path=path,
            event_type=event_type.value,
            delivered_to=delivered,
        )
        return delivered

    def clear_path(self, path: str) -> list[Client]:
        """Drop every client of a path.

        Args:
            path: Absolute path to clear.

        Returns:
            The removed clients.
        """
        return list(self._clients.pop(path, {}).values())

    def clear(self) -> list[Client]:
        """Drop every registration.

        Returns:
            The removed clients.
        """
        removed = [client for clients in self._clients.values() for client in clients.values()]
        self._clients.clear()
        return removed

    @staticmethod
    def _push(client: Client, frame: str) -> bool:
        if client.sink.is_closed:
            return False
        try:
            client.sink.push(frame)
        except ClientClosedError:
            return False
        client.last_update = now_ms()
        return True
