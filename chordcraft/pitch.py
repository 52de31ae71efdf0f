"""PitchTable: pitch-class names, chromatic indices and reference frequencies."""

# ── Pitch-class tables ────────────────────────────────────────────────────────

#: Chromatic pitch class names with sharp spellings (index 0 = C)
NOTE_NAMES: list[str] = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

#: The same twelve classes spelled with flats
FLAT_NOTE_NAMES: list[str] = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

#: Reference frequencies in octave 4 (A4 = 440 Hz)
NOTE_FREQUENCIES: dict[str, float] = {
    "C": 261.63,
    "C#": 277.18, "Db": 277.18,
    "D": 293.66,
    "D#": 311.13, "Eb": 311.13,
    "E": 329.63,
    "F": 349.23,
    "F#": 369.99, "Gb": 369.99,
    "G": 392.00,
    "G#": 415.30, "Ab": 415.30,
    "A": 440.00,
    "A#": 466.16, "Bb": 466.16,
    "B": 493.88,
}

SEMITONES_PER_OCTAVE = 12
REFERENCE_OCTAVE = 4

_CHROMATIC_INDEX: dict[str, int] = {
    **{name: index for index, name in enumerate(NOTE_NAMES)},
    **{name: index for index, name in enumerate(FLAT_NOTE_NAMES)},
}


class UnknownPitchClassError(ValueError):
    """Raised when a note, root or key name is not one of the 17 accepted spellings."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown pitch class '{name}'.")
        self.name = name


# ── Lookups ───────────────────────────────────────────────────────────────────

def chromatic_index_of(name: str) -> int:
    """
    Resolve a pitch-class name to its chromatic index.

    Args:
        name: Sharp or flat spelling, e.g. "C#" or "Db".

    Returns:
        0=C, 1=C#/Db, ..., 11=B.

    Raises:
        UnknownPitchClassError: If the name is not a recognised spelling.
    """
    try:
        return _CHROMATIC_INDEX[name]
    except (KeyError, TypeError):
        raise UnknownPitchClassError(name) from None


def frequency_of(name: str, octave: int = REFERENCE_OCTAVE) -> float:
    """
    Frequency in Hz of a pitch class in the given octave.

    The octave-4 reference frequency is scaled by 2^(octave - 4).

    Raises:
        UnknownPitchClassError: If the name is not a recognised spelling.
    """
    base = NOTE_FREQUENCIES.get(name)
    if base is None:
        raise UnknownPitchClassError(name)
    return base * 2.0 ** (octave - REFERENCE_OCTAVE)


def uses_flats(name: str) -> bool:
    """True when a root or key is spelled with a flat (e.g. "Bb")."""
    return len(name) == 2 and name.endswith("b")


def spell(pitch_class: int, flats: bool = False) -> str:
    """Name for a chromatic index, using flat spellings when *flats* is set."""
    names = FLAT_NOTE_NAMES if flats else NOTE_NAMES
    return names[pitch_class % SEMITONES_PER_OCTAVE]


def pitch_class_to_midi(pitch_class: int, octave: int) -> int:
    """
    Convert a pitch class (0-11) and an octave number to an absolute MIDI note.

    MIDI octave numbering: C-1 = 0, C0 = 12, C1 = 24, ... C4 (Middle C) = 60.

    Args:
        pitch_class: 0=C, 1=C#, 2=D, ..., 11=B.
        octave:      Scientific octave number (e.g. 4 for Middle C octave).

    Returns:
        MIDI note number.
    """
    return (octave + 1) * SEMITONES_PER_OCTAVE + pitch_class
