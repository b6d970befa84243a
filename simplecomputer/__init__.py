"""A small teaching computer with a terminal console, an assembler and a Basic translator."""

__version__ = "0.1.0"