"""salvo: rules engine for a single-player Battleship-style guessing game."""

__version__ = "0.1.0"
