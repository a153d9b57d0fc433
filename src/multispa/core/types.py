"""Core type definitions."""

from typing import NewType

# Root-absolute URL of a page under the pages root (e.g., "/src/pages/contact")
# Distinct from plain request paths to catch unresolved paths being served
PageURL = NewType("PageURL", str)
