import json

import pytest

from config import settings
from game.puzzle_corpus import PuzzleCorpus, build_board, merge_categories
from conftest import PUZZLE_RECORDS


def test_merge_drops_whole_category_with_duplicate_word(corpus):
    first, second = corpus.puzzles

    merged = merge_categories([first, second])

    assert [c.name for c in merged] == ['COLORS', 'BIRDS', 'METALS', 'TREES', 'DOGS', 'FRUIT', 'CARDS']
    words = [w for c in merged for w in c.words]
    assert len(words) == len(set(words))


def test_merge_keeps_first_claim(corpus):
    first, second = corpus.puzzles

    merged = merge_categories([second, first])

    assert 'ALSO COLORS' in [c.name for c in merged]
    assert 'COLORS' not in [c.name for c in merged]


def test_build_board_single_uses_first_puzzle(corpus):
    first, second = corpus.puzzles

    categories, words = build_board([first, second], mega_mode=False)

    assert categories == first.categories
    assert sorted(words) == sorted(w for c in first.categories for w in c.words)


def test_malformed_records_are_skipped():
    records = PUZZLE_RECORDS + [
        {'id': 'short', 'categories': [{'name': 'TOO FEW', 'words': ['A', 'B']}]},
        {'id': 'empty', 'categories': []},
        {'id': 'missing'},
        'not a puzzle'
    ]

    corpus = PuzzleCorpus.from_records(records)

    assert len(corpus) == 2


def test_empty_corpus_is_rejected():
    with pytest.raises(ValueError):
        PuzzleCorpus.from_records([{'categories': []}])


def test_random_puzzles_are_distinct_and_capped(corpus):
    picked = corpus.random_puzzles(5)

    assert len(picked) == 2
    assert {p.id for p in picked} == {'colors-animals', 'overlap'}
    assert len(corpus.random_puzzles(0)) == 1


def test_from_file_reads_json(tmp_path):
    path = tmp_path / 'puzzles.json'
    path.write_text(json.dumps(PUZZLE_RECORDS), encoding='utf-8')

    corpus = PuzzleCorpus.from_file(str(path))

    assert [p.id for p in corpus.puzzles] == ['colors-animals', 'overlap']


def test_bundled_archive_loads():
    corpus = PuzzleCorpus.from_file(settings.PUZZLE_ARCHIVE_PATH)

    assert len(corpus) >= 2
    for puzzle in corpus.puzzles:
        assert len(puzzle.categories) == 4
        assert all(len(c.words) == 4 for c in puzzle.categories)
