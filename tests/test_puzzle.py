import pytest

from game.models import PuzzlePhase


@pytest.fixture()
def start_connections(manager, lobby_of, scheduler):
    """Start a connections game."""

    def start(*names, settings=None):
        lobby = lobby_of(*names, game_type='connections', settings=settings or {})
        manager.start_game('sid-0')
        scheduler.advance(0.1)
        return lobby, lobby.game

    return start


def wrong_group(game):
    """Four unsolved words that do not form a category."""
    open_categories = [c for c in game.categories if c.name not in game.solved]
    return [category.words[0] for category in open_categories[:2]] + \
        [category.words[1] for category in open_categories[:2]]


def test_start_deals_single_puzzle(start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')

    payload = broadcaster.last('connections_start')
    assert len(game.categories) == 4
    assert sorted(payload['words']) == sorted(w for c in game.categories for w in c.words)
    assert payload['maxMistakes'] == 4
    assert payload['maxHints'] == 2
    assert payload['isMegaMode'] is False
    assert [p['playerId'] for p in payload['players']] == ['sid-0', 'sid-1']
    assert game.phase == PuzzlePhase.PLAYING


def test_mega_mode_merges_puzzles(start_connections, broadcaster):
    lobby, game = start_connections('H', settings={'megaMode': True})

    # the two test puzzles share the word RED, so one category is dropped
    assert len(game.categories) == 7
    assert len(game.words) == 28
    assert len(set(game.words)) == 28
    assert game.max_mistakes == 8
    assert game.max_hints == 4


def test_correct_group_scores_and_solves(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')
    category = game.categories[0]
    for word in category.words[:2]:
        manager.handle_game_action('sid-1', 'select_word', {'word': word})

    assert manager.handle_game_action('sid-1', 'submit_group', {'words': list(reversed(category.words))})

    assert category.name in game.solved
    assert lobby.players['sid-1'].board.score == 100
    assert lobby.players['sid-1'].board.selections == []
    assert len(game.words) == 12
    solved = broadcaster.last('category_solved')
    assert solved == {'category': category.to_dict(), 'solvedBy': 'P2', 'playerId': 'sid-1'}
    assert broadcaster.last('score_update') == {'scores': {'sid-0': 0, 'sid-1': 100}}


def test_solving_every_category_wins(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')

    for index, category in enumerate(list(game.categories)):
        manager.handle_game_action(f'sid-{index % 2}', 'submit_group', {'words': list(category.words)})

    assert game.phase == PuzzlePhase.WON
    end = broadcaster.last('connections_end')
    assert end['won'] is True
    assert sorted(end['solvedCategories']) == sorted(c.name for c in game.categories)
    assert [entry['score'] for entry in end['leaderboard']] == [200, 200]


def test_solved_category_cannot_score_twice(manager, start_connections):
    lobby, game = start_connections('H')
    category = game.categories[0]

    manager.handle_game_action('sid-0', 'submit_group', {'words': list(category.words)})
    manager.handle_game_action('sid-0', 'submit_group', {'words': list(category.words)})

    assert game.solved == [category.name]
    assert game.mistake_count == 1
    assert lobby.players['sid-0'].board.score == 75


def test_mistake_penalty_is_floored_at_zero(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')

    manager.handle_game_action('sid-1', 'submit_group', {'words': wrong_group(game)})

    assert lobby.players['sid-1'].board.score == 0
    assert game.mistake_count == 1
    assert broadcaster.last('mistake_made') == {
        'playerId': 'sid-1', 'playerName': 'P2', 'mistakeCount': 1, 'maxMistakes': 4
    }


def test_last_allowed_mistake_loses_in_same_step(manager, start_connections, broadcaster):
    lobby, game = start_connections('H')
    game.mistake_count = game.max_mistakes - 1

    manager.handle_game_action('sid-0', 'submit_group', {'words': wrong_group(game)})

    assert game.mistake_count == game.max_mistakes
    assert game.phase == PuzzlePhase.LOST
    assert broadcaster.last('connections_end')['won'] is False
    assert not manager.handle_game_action('sid-0', 'submit_group', {'words': list(game.categories[0].words)})


def test_submit_requires_exactly_four_words(manager, start_connections):
    lobby, game = start_connections('H')

    assert not manager.handle_game_action('sid-0', 'submit_group', {'words': game.categories[0].words[:3]})
    assert not manager.handle_game_action('sid-0', 'submit_group', {'words': 'RED BLUE'})
    assert game.mistake_count == 0


def test_selection_toggle_is_idempotent(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')
    word = game.words[0]

    manager.handle_game_action('sid-0', 'select_word', {'word': word})
    assert broadcaster.last('selection_update') == {'playerId': 'sid-0', 'selections': [word]}
    manager.handle_game_action('sid-0', 'select_word', {'word': word})

    assert lobby.players['sid-0'].board.selections == []
    assert broadcaster.last('selection_update') == {'playerId': 'sid-0', 'selections': []}


def test_fifth_selection_is_ignored(manager, start_connections, broadcaster):
    lobby, game = start_connections('H')
    for word in game.words[:4]:
        manager.handle_game_action('sid-0', 'select_word', {'word': word})
    updates = len(broadcaster.named('selection_update'))

    assert not manager.handle_game_action('sid-0', 'select_word', {'word': game.words[4]})

    assert lobby.players['sid-0'].board.selections == game.words[:4]
    assert len(broadcaster.named('selection_update')) == updates


def test_solving_prunes_other_players_selections(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')
    category = game.categories[0]
    manager.handle_game_action('sid-1', 'select_word', {'word': category.words[0]})

    manager.handle_game_action('sid-0', 'submit_group', {'words': list(category.words)})

    assert lobby.players['sid-1'].board.selections == []


def test_hints_reveal_distinct_unsolved_categories_up_to_cap(manager, start_connections, broadcaster):
    lobby, game = start_connections('H')

    assert manager.handle_game_action('sid-0', 'use_hint', {})
    assert manager.handle_game_action('sid-0', 'use_hint', {})
    assert not manager.handle_game_action('sid-0', 'use_hint', {})

    hints = broadcaster.named('hint_revealed')
    assert len(hints) == 2
    assert hints[0]['categoryName'] != hints[1]['categoryName']
    assert hints[1] == {
        'categoryName': hints[1]['categoryName'], 'hintsUsed': 2, 'maxHints': 2, 'usedBy': 'H'
    }


def test_shuffle_broadcasts_new_order(manager, start_connections, broadcaster):
    lobby, game = start_connections('H')
    before = sorted(game.words)

    assert manager.handle_game_action('sid-0', 'shuffle_words', {})

    assert sorted(broadcaster.last('words_shuffled')['words']) == before


def test_cursor_move_is_clamped_and_stored(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')

    manager.handle_game_action('sid-1', 'cursor_move', {'x': 250, 'y': None})

    assert lobby.players['sid-1'].board.cursor == (100.0, 0.0)
    scope, target, event, data, skip_id = broadcaster.events[-1]
    assert event == 'cursor_update'
    assert skip_id == 'sid-1'


def test_mid_game_joiner_gets_replay(manager, start_connections, broadcaster):
    lobby, game = start_connections('H')
    solved = game.categories[1]
    manager.handle_game_action('sid-0', 'submit_group', {'words': list(solved.words)})
    manager.handle_game_action('sid-0', 'use_hint', {})
    manager.handle_game_action('sid-0', 'submit_group', {'words': wrong_group(game)})

    manager.handle_connect('sid-new', 'token-new')
    manager.join_lobby('sid-new', lobby.code, 'Newbie')

    assert not lobby.players['sid-new'].is_spectator
    start = broadcaster.sent_to('sid-new', 'connections_start')[-1]
    assert len(start['words']) == 12
    assert broadcaster.sent_to('sid-new', 'category_solved')[-1]['category']['name'] == solved.name
    assert broadcaster.sent_to('sid-new', 'category_solved')[-1]['playerId'] == 'system'
    assert broadcaster.sent_to('sid-new', 'sync_hints')[-1]['hintsUsed'] == 1
    assert broadcaster.sent_to('sid-new', 'mistake_made')[-1]['mistakeCount'] == 1
    assert broadcaster.sent_to('sid-new', 'score_update')[-1]['scores']['sid-new'] == 0


def test_disconnect_clears_cursor_but_keeps_progress(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')
    category = game.categories[0]
    manager.handle_game_action('sid-1', 'submit_group', {'words': list(category.words)})
    manager.handle_game_action('sid-1', 'select_word', {'word': game.words[0]})

    manager.handle_disconnect('sid-1')

    assert lobby.players['sid-1'].board.cursor is None
    assert broadcaster.last('cursor_remove') == {'playerId': 'sid-1'}
    assert lobby.players['sid-1'].board.score == 100


def test_reconnect_carries_board_state_and_replays(manager, start_connections, scheduler, broadcaster):
    lobby, game = start_connections('H', 'P2')
    category = game.categories[0]
    manager.handle_game_action('sid-1', 'submit_group', {'words': list(category.words)})
    manager.handle_game_action('sid-1', 'select_word', {'word': game.words[0]})
    manager.handle_disconnect('sid-1')

    manager.handle_connect('sid-1b', 'token-1')

    player = lobby.players['sid-1b']
    assert player.board.score == 100
    assert player.board.selections == [game.words[0]]
    assert broadcaster.last('selection_update') == {'playerId': 'sid-1b', 'selections': [game.words[0]]}
    assert not broadcaster.sent_to('sid-1b', 'connections_start')

    scheduler.advance(0.5)

    assert broadcaster.sent_to('sid-1b', 'connections_start')
    assert broadcaster.sent_to('sid-1b', 'score_update')[-1]['scores']['sid-1b'] == 100


def test_leave_clears_board_state(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')
    manager.handle_game_action('sid-1', 'select_word', {'word': game.words[0]})

    manager.leave_lobby('sid-1')

    assert 'sid-1' not in lobby.players
    assert {'playerId': 'sid-1'} in broadcaster.named('cursor_remove')
    assert broadcaster.last('selection_update') == {'playerId': 'sid-1', 'selections': []}
    scope, target, event, data, skip_id = [e for e in broadcaster.events if e[2] == 'selection_update'][-1]
    assert (scope, target, skip_id) == ('lobby', lobby.code, 'sid-1')


def test_reconnect_clears_selection_under_old_id(manager, start_connections, broadcaster):
    lobby, game = start_connections('H', 'P2')
    manager.handle_game_action('sid-1', 'select_word', {'word': game.words[0]})
    manager.handle_disconnect('sid-1')
    broadcaster.clear()

    manager.handle_connect('sid-1b', 'token-1')

    updates = broadcaster.named('selection_update')
    assert updates == [
        {'playerId': 'sid-1', 'selections': []},
        {'playerId': 'sid-1b', 'selections': [game.words[0]]}
    ]


def test_deduction_actions_are_ignored(manager, start_connections):
    lobby, game = start_connections('H')

    assert not manager.handle_game_action('sid-0', 'submit_word', {'word': 'hello'})
