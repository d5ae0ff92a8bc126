"""
Client Module

Transport-independent board interaction: input handling, move log, sound cues.
"""

from .board_surface import BoardSurface, Presenter, Cue, MoveLog, square_name, format_time

__all__ = [
    'BoardSurface',
    'Presenter',
    'Cue',
    'MoveLog',
    'square_name',
    'format_time'
]
