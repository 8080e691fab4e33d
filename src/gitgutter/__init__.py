"""gitgutter — git change signs, hunk staging and conflict markers for buffers."""

__version__ = "0.3.0"
