"""ChordBuilder: builds immutable chord values from a root, quality, extension and inversion."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Literal, get_args

from chordcraft.pitch import (
    REFERENCE_OCTAVE,
    SEMITONES_PER_OCTAVE,
    chromatic_index_of,
    frequency_of,
    pitch_class_to_midi,
    spell,
    uses_flats,
)

Quality = Literal["major", "minor", "diminished", "augmented"]
Extension = Literal["7", "maj7", "m7", "dim7", "hdim7"]

QUALITIES: tuple[str, ...] = get_args(Quality)
EXTENSIONS: tuple[str, ...] = get_args(Extension)
MAX_INVERSION = 3


# ── Interval tables ─────────────────────────────────────────────────────────

#: Triad intervals and symbol suffix per quality
QUALITY_INTERVALS: dict[str, tuple[list[int], str]] = {
    "major": ([0, 4, 7], ""),
    "minor": ([0, 3, 7], "m"),
    "diminished": ([0, 3, 6], "dim"),
    "augmented": ([0, 4, 8], "aug"),
}

#: Seventh interval and symbol suffix per extension.
#: "7", "m7" and "hdim7" all add the minor seventh; only the symbol differs.
EXTENSION_INTERVALS: dict[str, tuple[int, str]] = {
    "7": (10, "7"),
    "maj7": (11, "maj7"),
    "m7": (10, "m7"),
    "dim7": (9, "dim7"),
    "hdim7": (10, "ø7"),
}


@dataclass(frozen=True)
class Note:
    """
    A pitch class sounding in a specific octave.

    Attributes:
        name:        Display spelling, e.g. "C#" or "Db". Not used for equality.
        pitch_class: Chromatic index 0-11.
        octave:      Scientific octave number (4 = Middle C octave).
    """

    name: str = field(compare=False)
    pitch_class: int
    octave: int

    @classmethod
    def from_name(cls, name: str, octave: int = REFERENCE_OCTAVE) -> Note:
        return cls(name=name, pitch_class=chromatic_index_of(name), octave=octave)

    @property
    def frequency(self) -> float:
        return frequency_of(self.name, self.octave)

    @property
    def midi_number(self) -> int:
        return pitch_class_to_midi(self.pitch_class, self.octave)

    def __str__(self) -> str:
        return f"{self.name}{self.octave}"


@dataclass(frozen=True)
class Chord:
    """
    An immutable chord value.

    Attributes:
        symbol:         Display symbol, e.g. "Am7" or "Bdim".
        root:           Root spelling as given by the caller.
        quality:        "major", "minor", "diminished" or "augmented".
        extension:      Optional seventh extension.
        inversion:      0 (root position) to 3.
        notes:          Notes ordered lowest-sounding first.
        roman_numeral:  Scale-degree label, unset outside a scale context.
    """

    symbol: str
    root: str
    quality: str
    extension: str | None
    inversion: int
    notes: tuple[Note, ...]
    roman_numeral: str | None = None

    @property
    def root_index(self) -> int:
        return chromatic_index_of(self.root)

    @property
    def pitch_classes(self) -> tuple[int, ...]:
        return tuple(note.pitch_class for note in self.notes)

    @property
    def bass(self) -> Note:
        return self.notes[0]

    def __str__(self) -> str:
        if self.roman_numeral:
            return f"{self.symbol} ({self.roman_numeral})"
        return self.symbol


# ── Builder ──────────────────────────────────────────────────────────────────

def _validate_inversion(inversion: int) -> None:
    if not 0 <= inversion <= MAX_INVERSION:
        raise ValueError(
            f"Inversion must be between 0 and {MAX_INVERSION}, got {inversion}. "
            "Reduce it modulo 4 first."
        )


def build_chord(
    root: str,
    quality: str = "major",
    extension: str | None = None,
    inversion: int = 0,
    octave: int = REFERENCE_OCTAVE,
) -> Chord:
    """
    Build a chord from its harmonic identity.

    The inversion rotates the chord tones left, one position per step. Each
    position keeps the octave computed from the root-position interval at that
    same position, so a rotated tone that crossed the octave boundary in root
    position lends its raised octave to whichever tone now sits there.

    Args:
        root:      Root spelling ("C", "F#", "Bb", ...).
        quality:   Triad quality.
        extension: Optional seventh ("7", "maj7", "m7", "dim7", "hdim7").
        inversion: Number of left rotations, 0-3.
        octave:    Octave of the root in root position.

    Returns:
        A Chord with roman_numeral unset.

    Raises:
        UnknownPitchClassError: If the root cannot be resolved.
        ValueError: For an unknown quality or extension, or an inversion outside 0-3.
    """
    root_index = chromatic_index_of(root)

    if quality not in QUALITY_INTERVALS:
        raise ValueError(f"Unknown chord quality '{quality}'. Use one of: {', '.join(QUALITIES)}.")
    _validate_inversion(inversion)

    base_intervals, suffix = QUALITY_INTERVALS[quality]
    intervals = list(base_intervals)
    symbol = f"{root}{suffix}"

    if extension:
        if extension not in EXTENSION_INTERVALS:
            raise ValueError(
                f"Unknown chord extension '{extension}'. Use one of: {', '.join(EXTENSIONS)}."
            )
        seventh, extension_suffix = EXTENSION_INTERVALS[extension]
        intervals.append(seventh)
        # "Am" + "m7" reads "Am7", "Cdim" + "dim7" reads "Cdim7"
        if suffix and extension_suffix == f"{suffix}7":
            symbol = root
        symbol += extension_suffix

    pitch_classes = [(root_index + iv) % SEMITONES_PER_OCTAVE for iv in intervals]
    for _ in range(inversion):
        pitch_classes.append(pitch_classes.pop(0))

    flats = uses_flats(root)
    notes = tuple(
        Note(
            name=spell(pc, flats),
            pitch_class=pc,
            octave=octave + (root_index + intervals[i]) // SEMITONES_PER_OCTAVE,
        )
        for i, pc in enumerate(pitch_classes)
    )

    return Chord(
        symbol=symbol,
        root=root,
        quality=quality,
        extension=extension or None,
        inversion=inversion,
        notes=notes,
    )


# ── Inversions ───────────────────────────────────────────────────────────────

def with_inversion(chord: Chord, inversion: int) -> Chord:
    """
    Return a copy of *chord* rebuilt in the requested inversion.

    The chord is reconstructed from root, quality and extension rather than
    rotated from its current notes; the roman numeral is carried over.

    Raises:
        ValueError: If the inversion is outside 0-3.
    """
    rebuilt = build_chord(chord.root, chord.quality, chord.extension, inversion)
    return dataclasses.replace(rebuilt, roman_numeral=chord.roman_numeral)


def all_inversions(chord: Chord) -> list[Chord]:
    """All four inversions (0-3) of a chord, in order."""
    return [with_inversion(chord, inversion) for inversion in range(MAX_INVERSION + 1)]


# ── Identity serialisation ───────────────────────────────────────────────────

def chord_to_dict(chord: Chord) -> dict[str, Any]:
    """
    Flatten a chord to the identity fields needed to rebuild it.

    Notes are omitted because they are derived from the other fields.
    """
    return {
        "symbol": chord.symbol,
        "root": chord.root,
        "quality": chord.quality,
        "extension": chord.extension,
        "inversion": chord.inversion,
        "roman_numeral": chord.roman_numeral,
    }


def chord_from_dict(data: dict[str, Any]) -> Chord:
    """
    Rebuild a chord from the dict produced by :func:`chord_to_dict`.

    Raises:
        KeyError: If "root" is missing.
        UnknownPitchClassError: If the root cannot be resolved.
        ValueError: For an invalid quality, extension or inversion.
    """
    chord = build_chord(
        data["root"],
        data.get("quality", "major"),
        data.get("extension"),
        int(data.get("inversion", 0)),
    )
    return dataclasses.replace(chord, roman_numeral=data.get("roman_numeral"))
