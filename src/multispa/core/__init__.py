"""Core path resolution: redirect patterns, pages, HTML transforms."""
