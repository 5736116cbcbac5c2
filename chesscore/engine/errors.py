from __future__ import annotations


class ChessError(ValueError):
    """Base class for rejected engine operations. State is left unchanged."""


class IllegalMove(ChessError):
    pass


class NothingToUndo(ChessError):
    def __init__(self, message: str = "no moves to undo") -> None:
        super().__init__(message)


class GameOverError(ChessError):
    def __init__(self, message: str = "game is over") -> None:
        super().__init__(message)


class SearchAlreadyRunning(ChessError):
    def __init__(self, message: str = "a search is already running") -> None:
        super().__init__(message)
