"""readtrack: reading-engagement tracker and recommendation coordinator."""

__version__ = "1.0.0"
