"""depfetch — recover third-party dependencies from a tree of recovered sources."""

__version__ = "0.1.0"
