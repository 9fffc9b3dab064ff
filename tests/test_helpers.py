import math

from utils.constants import LOBBY_CONFIG, PLAYER_COLORS
from utils.helpers import (
    clamp_coordinate, coerce_bool, coerce_int, generate_lobby_code,
    normalize_lobby_code, normalize_player_name, random_player_color
)


def test_lobby_code_uses_alphabet_and_avoids_existing(monkeypatch):
    codes = iter(['AAAAAA', 'BBBBBB'])
    monkeypatch.setattr('utils.helpers.random.choices', lambda alphabet, k: list(next(codes)))

    assert generate_lobby_code(existing_codes={'AAAAAA'}) == 'BBBBBB'


def test_lobby_code_shape():
    code = generate_lobby_code()

    assert len(code) == LOBBY_CONFIG['CODE_LENGTH']
    assert all(ch in LOBBY_CONFIG['CODE_ALPHABET'] for ch in code)


def test_normalize_lobby_code():
    assert normalize_lobby_code('  abc123 ') == 'ABC123'
    assert normalize_lobby_code(None) == ''


def test_normalize_player_name():
    assert normalize_player_name('  Ada   Lovelace ') == 'Ada Lovelace'
    assert normalize_player_name('<b>Bold</b>') == 'Bold'
    assert normalize_player_name('   ') == 'Player'
    assert normalize_player_name(42) == 'Player'
    assert len(normalize_player_name('x' * 50)) == LOBBY_CONFIG['MAX_NAME_LENGTH']


def test_random_player_color_from_palette():
    assert random_player_color() in PLAYER_COLORS


def test_clamp_coordinate():
    assert clamp_coordinate(42) == 42.0
    assert clamp_coordinate(-5) == 0.0
    assert clamp_coordinate(101.5) == 100.0
    assert clamp_coordinate('up') == 0.0
    assert clamp_coordinate(None) == 0.0
    assert clamp_coordinate(True) == 0.0
    assert clamp_coordinate(math.nan) == 0.0


def test_clamp_coordinate_parses_numeric_strings():
    assert clamp_coordinate('42.5') == 42.5
    assert clamp_coordinate(' 7 ') == 7.0
    assert clamp_coordinate('250') == 100.0
    assert clamp_coordinate('nan') == 0.0


def test_coerce_int():
    assert coerce_int('3', 1) == 3
    assert coerce_int(None, 1) == 1
    assert coerce_int('many', 1) == 1
    assert coerce_int(True, 1) == 1
    assert coerce_int(0, 1, minimum=1) == 1


def test_coerce_bool():
    assert coerce_bool(False, True) is False
    assert coerce_bool('false', True) is True
    assert coerce_bool(None, False) is False
