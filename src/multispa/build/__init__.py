"""Multi-page build: page entries, bundling and output flattening."""

from multispa.build.builder import BuildResult, build

__all__ = ["BuildResult", "build"]
