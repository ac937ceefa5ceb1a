"""Command line interface (``rtk``)."""

from rtk.cli.app import app

__all__ = ["app"]
