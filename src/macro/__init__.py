"""macro: an alias-expanding, command-repeating front-end for line-driven programs."""

__version__ = "0.1.0"
