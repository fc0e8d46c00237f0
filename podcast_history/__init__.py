"""Transfer podcast listening history between podcast player save files."""

__version__ = "0.1.0"
