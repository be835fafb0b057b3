"""HTTP API."""

from contentforge.api.app import app

__all__ = ["app"]
