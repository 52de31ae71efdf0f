"""Unit tests for diatonic scale generation."""

import pytest

from chordcraft.pitch import UnknownPitchClassError
from chordcraft.scales import find_chord_with_note, generate_scale, scale_notes


def test_c_major_notes() -> None:
    assert scale_notes("C", "major") == ["C", "D", "E", "F", "G", "A", "B"]


def test_a_minor_notes() -> None:
    assert scale_notes("A", "minor") == ["A", "B", "C", "D", "E", "F", "G"]


def test_flat_key_spelled_with_flats() -> None:
    assert scale_notes("Eb", "major") == ["Eb", "F", "G", "Ab", "Bb", "C", "D"]


def test_c_major_chords() -> None:
    scale = generate_scale("C", "major")
    assert scale.key == "C major"
    assert scale.mode == "major"
    assert [chord.symbol for chord in scale.chords] == ["C", "Dm", "Em", "F", "G", "Am", "Bdim"]
    assert scale.chords[0].quality == "major"
    assert scale.chords[6].quality == "diminished"
    assert scale.chords[6].roman_numeral == "vii°"


def test_major_roman_numerals() -> None:
    scale = generate_scale("G", "major")
    assert [chord.roman_numeral for chord in scale.chords] == ["I", "ii", "iii", "IV", "V", "vi", "vii°"]


def test_minor_chords_keep_natural_minor_dominant() -> None:
    scale = generate_scale("A", "minor")
    assert [chord.symbol for chord in scale.chords] == ["Am", "Bdim", "C", "Dm", "Em", "F", "G"]
    assert [chord.roman_numeral for chord in scale.chords] == ["i", "ii°", "III", "iv", "v", "VI", "VII"]
    assert scale.chords[4].quality == "minor"


@pytest.mark.parametrize("key", ["C", "F#", "Bb", "Db"])
@pytest.mark.parametrize("mode", ["major", "minor"])
def test_chord_roots_follow_scale_degrees(key: str, mode: str) -> None:
    scale = generate_scale(key, mode)
    assert len(scale.notes) == 7
    assert [chord.root for chord in scale.chords] == list(scale.notes)
    assert all(chord.inversion == 0 and chord.extension is None for chord in scale.chords)
    assert all(len(chord.notes) == 3 for chord in scale.chords)


def test_roman_numeral_case_matches_quality() -> None:
    for mode in ("major", "minor"):
        for chord in generate_scale("E", mode).chords:
            assert chord.roman_numeral is not None
            if chord.quality == "major":
                assert chord.roman_numeral.isupper()
            else:
                assert chord.roman_numeral.rstrip("°").islower()


def test_generate_scale_is_repeatable() -> None:
    assert generate_scale("D", "minor") == generate_scale("D", "minor")


def test_unknown_key_raises() -> None:
    with pytest.raises(UnknownPitchClassError):
        generate_scale("H", "major")


def test_unknown_mode_raises() -> None:
    with pytest.raises(ValueError, match="mode"):
        generate_scale("C", "dorian")


def test_find_chord_with_note_returns_first_match() -> None:
    scale = generate_scale("C", "major")
    assert find_chord_with_note(scale, "E").symbol == "C"
    assert find_chord_with_note(scale, "B").symbol == "Em"


def test_find_chord_with_note_matches_enharmonics() -> None:
    scale = generate_scale("A", "major")
    assert find_chord_with_note(scale, "Db").symbol == "A"


def test_find_chord_with_note_outside_the_key() -> None:
    assert find_chord_with_note(generate_scale("C", "major"), "F#") is None
