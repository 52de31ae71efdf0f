"""Unit tests for progression templates and editing."""

import random

import pytest

from chordcraft.chords import build_chord
from chordcraft.progression import (
    MAX_PROGRESSION_LENGTH,
    SavedProgression,
    add_random_chord,
    append_chord,
    cycle_inversion,
    generate_progression,
    move_chord,
    remove_chord,
    set_inversion,
    shuffle_chords,
)
from chordcraft.scales import generate_scale


@pytest.fixture
def c_major():
    return generate_scale("C", "major")


@pytest.fixture
def a_minor():
    return generate_scale("A", "minor")


def _roots(chords) -> list[str]:
    return [chord.root for chord in chords]


def test_pop_in_c_major(c_major) -> None:
    assert _roots(generate_progression(c_major, "pop", 4)) == ["C", "G", "A", "F"]


def test_jazz_in_c_major(c_major) -> None:
    chords = generate_progression(c_major, "jazz", 4)
    assert [chord.roman_numeral for chord in chords] == ["ii", "V", "I", "vi"]


def test_blues_in_c_major(c_major) -> None:
    assert _roots(generate_progression(c_major, "blues", 4)) == ["C", "C", "F", "C"]


def test_lofi_depends_on_mode(c_major, a_minor) -> None:
    assert _roots(generate_progression(c_major, "lofi", 4)) == ["A", "F", "C", "G"]
    assert _roots(generate_progression(a_minor, "lofi", 4)) == ["A", "G", "F", "G"]


def test_short_length_truncates_from_the_front(c_major) -> None:
    assert _roots(generate_progression(c_major, "pop", 2)) == ["C", "G"]


def test_long_length_is_not_padded(c_major) -> None:
    assert len(generate_progression(c_major, "pop", 12)) == 4


@pytest.mark.parametrize("length", [1, 2, 7, 16])
def test_random_returns_exact_length_from_scale(c_major, length: int) -> None:
    chords = generate_progression(c_major, "random", length, rng=random.Random(3))
    assert len(chords) == length
    assert all(chord in c_major.chords for chord in chords)


def test_random_is_reproducible_with_a_seed(c_major) -> None:
    first = generate_progression(c_major, "random", 8, rng=random.Random(42))
    second = generate_progression(c_major, "random", 8, rng=random.Random(42))
    assert first == second


def test_unknown_style_raises(c_major) -> None:
    with pytest.raises(ValueError, match="style"):
        generate_progression(c_major, "bossa", 4)


def test_append_chord_returns_a_new_list(c_major) -> None:
    chords = generate_progression(c_major, "pop", 4)
    extended = append_chord(chords, c_major.chords[1])
    assert len(chords) == 4
    assert _roots(extended) == ["C", "G", "A", "F", "D"]


def test_append_chord_respects_the_cap(c_major) -> None:
    chords = [c_major.chords[0]] * MAX_PROGRESSION_LENGTH
    with pytest.raises(ValueError):
        append_chord(chords, c_major.chords[0])


def test_add_random_chord_draws_from_the_scale(c_major) -> None:
    chords = add_random_chord([], c_major, rng=random.Random(1))
    assert len(chords) == 1
    assert chords[0] in c_major.chords


def test_remove_chord(c_major) -> None:
    chords = generate_progression(c_major, "pop", 4)
    assert _roots(remove_chord(chords, 1)) == ["C", "A", "F"]


def test_remove_chord_out_of_range(c_major) -> None:
    with pytest.raises(ValueError):
        remove_chord(generate_progression(c_major, "pop", 4), 4)


def test_move_chord(c_major) -> None:
    chords = generate_progression(c_major, "pop", 4)
    assert _roots(move_chord(chords, 0, 3)) == ["G", "A", "F", "C"]
    assert _roots(move_chord(chords, 3, 0)) == ["F", "C", "G", "A"]
    assert _roots(chords) == ["C", "G", "A", "F"]


def test_shuffle_keeps_the_same_chords(c_major) -> None:
    chords = list(c_major.chords)
    shuffled = shuffle_chords(chords, rng=random.Random(5))
    assert sorted(_roots(shuffled)) == sorted(_roots(chords))
    assert _roots(chords) == list(c_major.notes)


def test_shuffle_leaves_single_chord_alone(c_major) -> None:
    assert shuffle_chords([c_major.chords[2]]) == [c_major.chords[2]]


def test_set_inversion(c_major) -> None:
    chords = generate_progression(c_major, "pop", 4)
    updated = set_inversion(chords, 1, 1)
    assert updated[1].inversion == 1
    assert updated[1].roman_numeral == "V"
    assert [note.name for note in updated[1].notes] == ["B", "D", "G"]
    assert chords[1].inversion == 0


def test_cycle_inversion_wraps(c_major) -> None:
    chords = [c_major.chords[0]]
    inversions = []
    for _ in range(5):
        chords = cycle_inversion(chords, 0)
        inversions.append(chords[0].inversion)
    assert inversions == [1, 2, 3, 0, 1]


def test_saved_progression_round_trip(c_major) -> None:
    chords = set_inversion(generate_progression(c_major, "jazz", 4), 0, 2)
    saved = SavedProgression.from_progression(chords, c_major, tempo=90, style="jazz", rhythm_pattern="waltz")

    data = saved.to_dict()
    assert data["name"] == "C major jazz"
    assert data["chords"][0] == {
        "symbol": "Dm",
        "root": "D",
        "quality": "minor",
        "extension": None,
        "inversion": 2,
        "roman_numeral": "ii",
    }

    restored = SavedProgression.from_dict(data)
    assert restored == saved
    assert restored.chords() == chords


def test_saved_progression_rebuilds_sevenths() -> None:
    chord = build_chord("G", "major", "7")
    saved = SavedProgression.from_progression(
        [chord], generate_scale("C", "major"), tempo=120, style="pop", rhythm_pattern="block"
    )
    assert saved.chords()[0].symbol == "G7"
    assert len(saved.chords()[0].notes) == 4
