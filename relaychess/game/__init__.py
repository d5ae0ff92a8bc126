"""
Chess Game Module

Handles game logic, clocks, players and move types.
"""

from .game_manager import GameManager, GameState, Termination, Outcome
from .clock import ChessClock
from .moves import MoveRequest, describe_move
from .player import Player, HumanPlayer, EnginePlayer

__all__ = [
    'GameManager',
    'GameState',
    'Termination',
    'Outcome',
    'ChessClock',
    'MoveRequest',
    'describe_move',
    'Player',
    'HumanPlayer',
    'EnginePlayer'
]
