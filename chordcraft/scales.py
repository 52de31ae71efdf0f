"""ScaleBuilder: derives the seven diatonic chords for a key and mode."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Literal, get_args

from chordcraft.chords import Chord, build_chord
from chordcraft.pitch import SEMITONES_PER_OCTAVE, chromatic_index_of, spell, uses_flats

logger = logging.getLogger(__name__)

Mode = Literal["major", "minor"]
MODES: tuple[str, ...] = get_args(Mode)

# ── Degree tables ────────────────────────────────────────────────────────────

SCALE_INTERVALS: dict[str, list[int]] = {
    "major": [0, 2, 4, 5, 7, 9, 11],
    "minor": [0, 2, 3, 5, 7, 8, 10],  # natural minor
}

#: Triad quality per scale degree. The minor dominant stays natural-minor "v".
DEGREE_QUALITIES: dict[str, list[str]] = {
    "major": ["major", "minor", "minor", "major", "major", "minor", "diminished"],
    "minor": ["minor", "diminished", "major", "minor", "minor", "major", "major"],
}

ROMAN_NUMERALS: dict[str, list[str]] = {
    "major": ["I", "ii", "iii", "IV", "V", "vi", "vii°"],
    "minor": ["i", "ii°", "III", "iv", "v", "VI", "VII"],
}


@dataclass(frozen=True)
class Scale:
    """
    A key and mode with its seven diatonic triads.

    Attributes:
        key:    Display name, e.g. "C major".
        mode:   "major" or "minor".
        notes:  The seven degree names ascending from the tonic.
        chords: Root-position triads on each degree, labelled with roman numerals.
    """

    key: str
    mode: str
    notes: tuple[str, ...]
    chords: tuple[Chord, ...]


def _check_mode(mode: str) -> None:
    if mode not in SCALE_INTERVALS:
        raise ValueError(f"Unknown mode '{mode}'. Use one of: {', '.join(MODES)}.")


def scale_notes(key: str, mode: str) -> list[str]:
    """
    The seven pitch-class names of a key, ascending from the tonic.

    Flat-spelled keys ("Eb", "Bb", ...) are spelled with flats, all others
    with sharps. The tonic keeps the caller's spelling.

    Raises:
        UnknownPitchClassError: If the key cannot be resolved.
        ValueError: For an unknown mode.
    """
    key_index = chromatic_index_of(key)
    _check_mode(mode)
    flats = uses_flats(key)
    names = [spell((key_index + iv) % SEMITONES_PER_OCTAVE, flats) for iv in SCALE_INTERVALS[mode]]
    names[0] = key
    return names


def generate_scale(key: str, mode: str) -> Scale:
    """
    Build the diatonic triads of a key.

    Quality comes from the fixed per-degree table; the roman numeral is
    attached verbatim from the label table. No sevenths are added.

    Raises:
        UnknownPitchClassError: If the key cannot be resolved.
        ValueError: For an unknown mode.
    """
    notes = scale_notes(key, mode)
    qualities = DEGREE_QUALITIES[mode]
    romans = ROMAN_NUMERALS[mode]

    chords = tuple(
        dataclasses.replace(build_chord(root, qualities[degree]), roman_numeral=romans[degree])
        for degree, root in enumerate(notes)
    )

    scale = Scale(key=f"{key} {mode}", mode=mode, notes=tuple(notes), chords=chords)
    logger.debug("Generated %s: %s", scale.key, " ".join(chord.symbol for chord in chords))
    return scale


def find_chord_with_note(scale: Scale, note_name: str) -> Chord | None:
    """
    First diatonic chord of *scale* that contains the given pitch class.

    Enharmonic spellings match ("Db" finds a chord holding "C#").

    Raises:
        UnknownPitchClassError: If the note name cannot be resolved.
    """
    pitch_class = chromatic_index_of(note_name)
    for chord in scale.chords:
        if pitch_class in chord.pitch_classes:
            return chord
    return None
