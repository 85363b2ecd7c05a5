"""Video platform backend: accounts, token sessions, comments and media uploads."""

__version__ = "0.1.0"
