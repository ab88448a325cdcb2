"""Discover MIDI controllers, verify them by SysEx identity reply, and record their messages."""

__version__ = "1.0.0"
__all__ = ["__version__"]