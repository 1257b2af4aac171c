"""ChromaScape — colour-vision automation for a desktop game client."""

__version__ = "0.4.0"
