"""Audit a directory of git checkouts for work that is not backed up."""

__version__ = "0.1.0"
