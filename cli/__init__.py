"""Command line client for the farm monitor HTTP API."""

__all__: list[str] = []
