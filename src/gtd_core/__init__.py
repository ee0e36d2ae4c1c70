"""GTD Core - record store, identity service and REST API for the GTD app."""

__version__ = "1.0.0"
