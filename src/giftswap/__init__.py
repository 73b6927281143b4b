"""White-elephant gift-swap game engine."""

__version__ = "0.1.0"
