"""HTTP layer: JSON API routes and server-rendered pages."""

from invoicing.api.app import create_app

__all__ = ["create_app"]
