"""WebSocket-based live reload for development mode.

Monitors project files for changes and notifies connected clients
via WebSocket to trigger page reloads.
"""

import asyncio
import json
import logging
import weakref
from pathlib import Path

from aiohttp import WSMsgType, web
from watchfiles import awatch

logger = logging.getLogger(__name__)

DEFAULT_WATCH_PATTERNS = ["**/*.html", "**/*.css", "**/*.js"]

CLIENT_SCRIPT = """\
const socket = new WebSocket(
  `${location.protocol === "https:" ? "wss" : "ws"}://${location.host}%(ws_path)s`
);
socket.addEventListener("message", (event) => {
  const data = JSON.parse(event.data);
  if (data.type === "reload") location.reload();
});
"""


class LiveReloadManager:
    """Manages WebSocket connections and file watching for live reload.

    Coordinates between file system watcher and connected WebSocket clients
    to provide automatic page refresh on file changes.
    """

    def __init__(
        self,
        root_dir: Path,
        watch_patterns: list[str] | None = None,
        *,
        ignore_dirs: list[Path] | None = None,
    ) -> None:
        """Initialize the live reload manager.

        Args:
            root_dir: Project directory to watch for changes
            watch_patterns: Glob patterns to watch (default: html, css, js)
            ignore_dirs: Directories whose changes never trigger a reload
        """
        self._root_dir = root_dir
        self._watch_patterns = watch_patterns or DEFAULT_WATCH_PATTERNS
        self._ignore_dirs = ignore_dirs or []
        self._connections: weakref.WeakSet[web.WebSocketResponse] = weakref.WeakSet()
        self._watch_task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        """Start the file watcher."""
        if self._watch_task is not None:
            return
        self._watch_task = asyncio.create_task(self._watch_files())

    async def stop(self) -> None:
        """Stop the file watcher and close all connections."""
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None

        for ws in list(self._connections):
            await ws.close()

    async def handle_websocket(self, request: web.Request) -> web.WebSocketResponse:
        """Handle WebSocket connection for live reload."""
        ws = web.WebSocketResponse()
        await ws.prepare(request)

        self._connections.add(ws)

        try:
            async for msg in ws:
                if msg.type == WSMsgType.ERROR:
                    break
        finally:
            self._connections.discard(ws)

        return ws

    async def _watch_files(self) -> None:
        """Watch for file changes and broadcast reload events."""
        async for changes in awatch(self._root_dir):
            for _, path_str in changes:
                path = Path(path_str)
                if not self.matches_patterns(path):
                    continue

                url_path = self.to_url_path(path)
                logger.debug(f"Changed: {url_path}")
                await self.broadcast_reload(url_path)

    def matches_patterns(self, path: Path) -> bool:
        """Check if a path matches any watch pattern and no ignored directory.

        Args:
            path: Absolute path to check

        Returns:
            True if path should trigger a reload
        """
        try:
            relative = path.relative_to(self._root_dir)
        except ValueError:
            return False

        for ignored in self._ignore_dirs:
            if path.is_relative_to(ignored):
                return False

        for pattern in self._watch_patterns:
            if relative.match(pattern):
                return True
            # Path.match needs at least one directory for a leading "**/"
            if pattern.startswith("**/") and relative.match(pattern[3:]):
                return True
        return False

    def to_url_path(self, file_path: Path) -> str:
        """Convert a file system path to a root-absolute URL path."""
        return "/" + file_path.relative_to(self._root_dir).as_posix()

    async def broadcast_reload(self, path: str) -> None:
        """Broadcast reload event to all connected clients.

        Args:
            path: URL path that changed
        """
        if not self._connections:
            return

        message = json.dumps({"type": "reload", "path": path})

        for ws in list(self._connections):
            if ws.closed:
                continue
            try:
                await ws.send_str(message)
            except ConnectionResetError:
                # Client disconnected mid-send, will be cleaned up by WeakSet
                pass


def create_live_reload_routes(
    manager: LiveReloadManager,
    prefix: str,
) -> list[web.RouteDef]:
    """Create routes for the live reload WebSocket and its client script.

    Args:
        manager: LiveReloadManager instance
        prefix: Internal path prefix (e.g., "/@multispa/")

    Returns:
        List of route definitions
    """
    ws_path = f"{prefix}ws"
    script = CLIENT_SCRIPT % {"ws_path": ws_path}

    async def client_script(request: web.Request) -> web.Response:
        return web.Response(text=script, content_type="application/javascript")

    return [
        web.get(ws_path, manager.handle_websocket),
        web.get(f"{prefix}client.js", client_script),
    ]
