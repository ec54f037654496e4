import re

import pytest

from dropfour.models import BOARD_SIZE, PLAYER_O, PLAYER_X, Board, Room, generate_room_code, other_role


def test_generate_room_code_is_short_uppercase_alphanumeric():
    for _ in range(50):
        assert re.fullmatch(r'[A-Z0-9]{6}', generate_room_code())
    assert len(generate_room_code(4)) == 4


def test_other_role():
    assert other_role(PLAYER_X) == PLAYER_O
    assert other_role(PLAYER_O) == PLAYER_X


def test_room_seats_x_then_o():
    room = Room('ABC123')
    assert room.status == 'waiting'
    assert room.add_player('a') == PLAYER_X
    assert room.status == 'waiting'
    assert room.add_player('b') == PLAYER_O
    assert room.status == 'active'
    assert room.is_full()
    with pytest.raises(ValueError):
        room.add_player('c')


def test_vacant_role_after_creator_leaves():
    room = Room('ABC123')
    room.add_player('a')
    room.add_player('b')
    assert room.remove_player('a') == 1
    assert room.role_of('a') is None
    assert room.vacant_role() == PLAYER_X
    assert room.add_player('c') == PLAYER_X
    assert room.role_of('b') == PLAYER_O


def test_play_alternates_turns():
    room = Room('ABC123')
    room.add_player('a')
    room.add_player('b')
    outcome = room.play(5)
    assert outcome['event'] == 'moveMade'
    assert outcome['payload']['row'] == 9
    assert outcome['payload']['col'] == 5
    assert outcome['payload']['player'] == PLAYER_X
    assert outcome['payload']['currentPlayer'] == PLAYER_O
    assert room.is_turn_of('b')
    assert not room.is_turn_of('a')
    outcome = room.play(5)
    assert outcome['payload']['row'] == 8
    assert outcome['payload']['player'] == PLAYER_O
    assert room.current_player == PLAYER_X


def test_play_full_column_is_a_noop():
    room = Room('ABC123')
    for _ in range(BOARD_SIZE):
        # Alternating markers in one column never make four
        room.play(0)
    turn = room.current_player
    assert room.play(0) is None
    assert room.current_player == turn


def test_play_win_sets_game_over():
    room = Room('ABC123')
    # X in column 0, O in column 1, X completes the column
    for _ in range(3):
        room.play(0)
        room.play(1)
    outcome = room.play(0)
    assert outcome['event'] == 'gameOver'
    assert outcome['payload']['winner'] == PLAYER_X
    assert sorted(map(tuple, outcome['payload']['winningCells'])) == [(6, 0), (7, 0), (8, 0), (9, 0)]
    assert room.game_over
    assert room.status == 'over'
    assert room.play(2) is None


def test_draw_when_board_fills():
    room = Room('ABC123')
    # Pre-fill a board with no four-in-a-row, leaving the top-right cell open
    pattern = ['X', 'X', 'O', 'O']
    for row in range(BOARD_SIZE):
        for col in range(BOARD_SIZE):
            room.board.cells[row][col] = pattern[(col + 2 * (row % 2)) % 4]
    room.board.cells[0][9] = None
    room.current_player = room.board.cells[2][9]
    outcome = room.play(9)
    assert outcome['event'] == 'gameOver'
    assert outcome['payload']['winner'] is None
    assert 'winningCells' not in outcome['payload']
    assert room.game_over


def test_reset_clears_board_turn_and_flag():
    room = Room('ABC123')
    room.game_over = True
    room.current_player = PLAYER_O
    room.board.drop(4, PLAYER_O)
    room.reset()
    assert room.current_player == PLAYER_X
    assert not room.game_over
    assert room.board.to_list() == Board().to_list()
    room.reset()
    assert room.current_player == PLAYER_X


def test_to_dict_snapshot():
    room = Room('ABC123')
    room.add_player('a')
    data = room.to_dict()
    assert data['roomId'] == 'ABC123'
    assert data['status'] == 'waiting'
    assert data['players'] == 1
    assert data['roles'] == {'X': True, 'O': False}
    assert data['currentPlayer'] == 'X'
    assert data['gameOver'] is False
    assert len(data['board']) == BOARD_SIZE
