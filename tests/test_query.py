from core.query import build_query


def test_build_query_replaces_spaces_and_keeps_punctuation():
    q = build_query("Assassin's Creed Mirage")
    assert q == "Assassin's+Creed+Mirage"
    assert " " not in q


def test_build_query_collapses_whitespace_runs():
    assert build_query("Half-Life  2:\tEpisode\nOne") == "Half-Life+2:+Episode+One"


def test_build_query_strips_outer_whitespace():
    assert build_query("  Celeste ") == "Celeste"


def test_build_query_empty_name():
    assert build_query("") == ""
    assert build_query("   ") == ""


def test_build_query_single_word_untouched():
    assert build_query("DOOM") == "DOOM"
