"""Build pipeline types."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

CLIENT_ENVIRONMENT = "client"

OutputType = Literal["asset", "chunk"]


@dataclass
class OutputFile:
    """A file produced by the bundler.

    ``file_name`` is relative to the output directory and may be changed
    by post-processing before the bundle is written.
    """

    file_name: str
    type: OutputType
    source: bytes
    origin: str | None = None


# Keyed by the name the file was first emitted under
Bundle = dict[str, OutputFile]


@dataclass
class BuildContext:
    """State for one environment's build pass."""

    environment: str
    root_dir: Path
    entries: list[str] = field(default_factory=list)

    @property
    def is_client(self) -> bool:
        return self.environment == CLIENT_ENVIRONMENT

    def emit_entry(self, entry_id: str) -> None:
        """Register a root-relative HTML file as a build entry."""
        if entry_id not in self.entries:
            self.entries.append(entry_id)
