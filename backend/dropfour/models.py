import random
import string
import threading
from typing import Dict, List, Optional, Tuple

PLAYER_X = 'X'
PLAYER_O = 'O'
ROLES = (PLAYER_X, PLAYER_O)

BOARD_SIZE = 10
WIN_LENGTH = 4
MAX_PLAYERS = 2

# Axis pairs checked in this order: horizontal, vertical, diagonal \, diagonal /
DIRECTIONS = (
    ((0, 1), (0, -1)),
    ((1, 0), (-1, 0)),
    ((1, 1), (-1, -1)),
    ((1, -1), (-1, 1)),
)

Cell = Tuple[int, int]


def other_role(role: str) -> str:
    return PLAYER_O if role == PLAYER_X else PLAYER_X


def generate_room_code(length=6):
    """Generate a short, human-enterable room code."""
    return ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))


class Board:
    """Fixed-size grid with gravity-drop placement.

    Row 0 is the top row; markers settle towards row ``size - 1``.
    """

    def __init__(self, size: int = BOARD_SIZE):
        self.size = size
        self.reset()

    def reset(self) -> None:
        self.cells: List[List[Optional[str]]] = [[None] * self.size for _ in range(self.size)]

    def drop(self, col: int, role: str) -> Optional[int]:
        """Place ``role`` in the lowest empty cell of ``col``.

        Returns the row that received the marker, or None when the column is
        full (or out of range) and nothing was placed.
        """
        if not 0 <= col < self.size:
            return None
        for row in range(self.size - 1, -1, -1):
            if self.cells[row][col] is None:
                self.cells[row][col] = role
                return row
        return None

    def check_win(self, row: int, col: int, role: str) -> Optional[List[Cell]]:
        """Return the run of ``role`` cells through (row, col) if it is long enough.

        Only the lines through the given cell are inspected, so this must be
        called with the cell that was just filled.
        """
        for first, second in DIRECTIONS:
            cells = [(row, col)]
            for dr, dc in (first, second):
                r, c = row + dr, col + dc
                while self._in_bounds(r, c) and self.cells[r][c] == role:
                    cells.append((r, c))
                    r += dr
                    c += dc
            if len(cells) >= WIN_LENGTH:
                return cells
        return None

    def is_full(self) -> bool:
        return all(cell is not None for line in self.cells for cell in line)

    def to_list(self) -> List[List[Optional[str]]]:
        return [list(line) for line in self.cells]

    def _in_bounds(self, row: int, col: int) -> bool:
        return 0 <= row < self.size and 0 <= col < self.size


class Room:
    """One match: its board, turn, roles and connected participants."""

    def __init__(self, room_id: str, board_size: int = BOARD_SIZE):
        self.id = room_id
        self.players: List[str] = []
        self.player_roles: Dict[str, str] = {}
        self.current_player = PLAYER_X
        self.board = Board(board_size)
        self.game_over = False
        self.lock = threading.RLock()

    @property
    def status(self) -> str:
        # waiting, active, over
        if self.game_over:
            return 'over'
        if len(self.players) < MAX_PLAYERS:
            return 'waiting'
        return 'active'

    def is_full(self) -> bool:
        return len(self.players) >= MAX_PLAYERS

    def has_player(self, participant_id: str) -> bool:
        return participant_id in self.players

    def role_of(self, participant_id: str) -> Optional[str]:
        return self.player_roles.get(participant_id)

    def vacant_role(self) -> str:
        taken = set(self.player_roles.values())
        for role in ROLES:
            if role not in taken:
                return role
        raise ValueError(f'room {self.id} has no vacant role')

    def add_player(self, participant_id: str) -> str:
        if self.is_full():
            raise ValueError(f'room {self.id} is full')
        role = self.vacant_role()
        self.players.append(participant_id)
        self.player_roles[participant_id] = role
        return role

    def remove_player(self, participant_id: str) -> int:
        """Drop a participant and its role; returns how many remain."""
        if participant_id in self.players:
            self.players.remove(participant_id)
        self.player_roles.pop(participant_id, None)
        return len(self.players)

    def play(self, col: int) -> Optional[dict]:
        """Drop the current player's marker into ``col``.

        Returns None if the move is a no-op (game already over, or column full).
        Otherwise returns a dict with ``event`` and ``payload`` keys, ready to
        broadcast to the room. Turn checks are the caller's job, see
        ``is_turn_of``.
        """
        if self.game_over:
            return None
        role = self.current_player
        row = self.board.drop(col, role)
        if row is None:
            return None

        winning_cells = self.board.check_win(row, col, role)
        if winning_cells:
            self.game_over = True
            return {
                'event': 'gameOver',
                'payload': {
                    'winner': role,
                    'winningCells': [list(cell) for cell in winning_cells],
                    'board': self.board.to_list(),
                },
            }
        if self.board.is_full():
            self.game_over = True
            return {
                'event': 'gameOver',
                'payload': {'winner': None, 'board': self.board.to_list()},
            }

        self.current_player = other_role(role)
        return {
            'event': 'moveMade',
            'payload': {
                'row': row,
                'col': col,
                'player': role,
                'currentPlayer': self.current_player,
                'board': self.board.to_list(),
            },
        }

    def is_turn_of(self, participant_id: str) -> bool:
        return self.player_roles.get(participant_id) == self.current_player

    def reset(self) -> None:
        self.board.reset()
        self.current_player = PLAYER_X
        self.game_over = False

    def to_dict(self):
        taken = set(self.player_roles.values())
        return {
            'roomId': self.id,
            'status': self.status,
            'players': len(self.players),
            'roles': {role: role in taken for role in ROLES},
            'currentPlayer': self.current_player,
            'gameOver': self.game_over,
            'board': self.board.to_list(),
        }
