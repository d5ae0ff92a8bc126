"""
relaychess

Browser chess against a remote engine: a FastAPI server relays moves between
the player and the stockfish.online API, validated with python-chess.
"""

__version__ = "1.0.0"
