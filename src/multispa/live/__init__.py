"""Live reload for development mode."""

from multispa.live.reload import LiveReloadManager

__all__ = ["LiveReloadManager"]
