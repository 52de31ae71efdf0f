"""ProgressionTemplater: style templates plus list-level editing of chord progressions."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Sequence, get_args

from chordcraft.chords import MAX_INVERSION, Chord, chord_from_dict, chord_to_dict, with_inversion
from chordcraft.scales import Scale

logger = logging.getLogger(__name__)

Style = Literal["pop", "jazz", "blues", "lofi", "random"]
STYLES: tuple[str, ...] = get_args(Style)

MIN_PROGRESSION_LENGTH = 2
MAX_PROGRESSION_LENGTH = 16
DEFAULT_PROGRESSION_LENGTH = 4

# ── Templates ────────────────────────────────────────────────────────────────

#: Scale-degree indices per style; "lofi" depends on the mode.
STYLE_TEMPLATES: dict[str, list[int]] = {
    "pop": [0, 4, 5, 3],    # I-V-vi-IV
    "jazz": [1, 4, 0, 5],   # ii-V-I-vi
    "blues": [0, 0, 3, 0],  # I-I-IV-I
}

LOFI_TEMPLATES: dict[str, list[int]] = {
    "minor": [0, 6, 5, 6],  # i-VII-VI-VII
    "major": [5, 3, 0, 4],  # vi-IV-I-V
}


def template_degrees(style: str, mode: str) -> list[int]:
    """
    Degree indices for a template style.

    Raises:
        ValueError: For "random" (which has no template) or an unknown style.
    """
    if style == "lofi":
        return list(LOFI_TEMPLATES["minor" if mode == "minor" else "major"])
    if style in STYLE_TEMPLATES:
        return list(STYLE_TEMPLATES[style])
    raise ValueError(f"Style '{style}' has no degree template. Templates: pop, jazz, blues, lofi.")


def generate_progression(
    scale: Scale,
    style: str,
    length: int = DEFAULT_PROGRESSION_LENGTH,
    rng: random.Random | None = None,
) -> list[Chord]:
    """
    Compose a progression from the diatonic chords of *scale*.

    Template styles are sliced to *length* and never padded, so a length
    beyond the template size yields the whole template. "random" draws
    *length* chords uniformly, with replacement.

    Args:
        scale:  Source of the seven diatonic chords.
        style:  "pop", "jazz", "blues", "lofi" or "random".
        length: Requested number of chords; bounds are the caller's concern.
        rng:    Random source for "random"; defaults to the module generator.

    Raises:
        ValueError: For an unknown style.
    """
    if style not in STYLES:
        raise ValueError(f"Unknown style '{style}'. Use one of: {', '.join(STYLES)}.")

    if style == "random":
        rng = rng or random.Random()
        chords = [rng.choice(scale.chords) for _ in range(length)]
    else:
        chords = [scale.chords[degree] for degree in template_degrees(style, scale.mode)[:length]]

    logger.debug(
        "Generated %s progression in %s: %s",
        style,
        scale.key,
        " ".join(chord.symbol for chord in chords),
    )
    return chords


# ── Editing ──────────────────────────────────────────────────────────────────
# Every operation returns a new list and leaves its input untouched.

def _check_index(chords: Sequence[Chord], index: int) -> None:
    if not 0 <= index < len(chords):
        raise ValueError(f"Chord index {index} out of range for a progression of {len(chords)}.")


def append_chord(chords: Sequence[Chord], chord: Chord) -> list[Chord]:
    """Append a chord; a full progression raises ValueError."""
    if len(chords) >= MAX_PROGRESSION_LENGTH:
        raise ValueError(f"A progression holds at most {MAX_PROGRESSION_LENGTH} chords.")
    return [*chords, chord]


def add_random_chord(
    chords: Sequence[Chord],
    scale: Scale,
    rng: random.Random | None = None,
) -> list[Chord]:
    """Append one diatonic chord of *scale* picked at random."""
    rng = rng or random.Random()
    return append_chord(chords, rng.choice(scale.chords))


def remove_chord(chords: Sequence[Chord], index: int) -> list[Chord]:
    _check_index(chords, index)
    return [chord for i, chord in enumerate(chords) if i != index]


def move_chord(chords: Sequence[Chord], from_index: int, to_index: int) -> list[Chord]:
    """Move the chord at *from_index* so that it ends up at *to_index*."""
    _check_index(chords, from_index)
    _check_index(chords, to_index)
    moved = list(chords)
    moved.insert(to_index, moved.pop(from_index))
    return moved


def shuffle_chords(chords: Sequence[Chord], rng: random.Random | None = None) -> list[Chord]:
    """Shuffled copy; fewer than two chords come back unchanged."""
    shuffled = list(chords)
    if len(shuffled) < 2:
        return shuffled
    (rng or random.Random()).shuffle(shuffled)
    return shuffled


def set_inversion(chords: Sequence[Chord], index: int, inversion: int) -> list[Chord]:
    """Replace the chord at *index* with the same chord in another inversion."""
    _check_index(chords, index)
    updated = list(chords)
    updated[index] = with_inversion(updated[index], inversion)
    return updated


def cycle_inversion(chords: Sequence[Chord], index: int) -> list[Chord]:
    """Step the chord at *index* to its next inversion, wrapping 3 -> 0."""
    _check_index(chords, index)
    return set_inversion(chords, index, (chords[index].inversion + 1) % (MAX_INVERSION + 1))


# ── Saved progressions ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class SavedProgression:
    """
    Storage-neutral snapshot of a progression and its playback settings.

    Only chord identity fields are kept; :meth:`chords` rebuilds full chords.
    """

    name: str
    key: str
    chord_data: tuple[dict[str, Any], ...]
    tempo: int
    style: str
    rhythm_pattern: str
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @classmethod
    def from_progression(
        cls,
        chords: Sequence[Chord],
        scale: Scale,
        tempo: int,
        style: str,
        rhythm_pattern: str,
    ) -> SavedProgression:
        return cls(
            name=f"{scale.key} {style}",
            key=scale.key,
            chord_data=tuple(chord_to_dict(chord) for chord in chords),
            tempo=tempo,
            style=style,
            rhythm_pattern=rhythm_pattern,
        )

    def chords(self) -> list[Chord]:
        return [chord_from_dict(data) for data in self.chord_data]

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "key": self.key,
            "chords": [dict(data) for data in self.chord_data],
            "tempo": self.tempo,
            "style": self.style,
            "rhythm_pattern": self.rhythm_pattern,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SavedProgression:
        return cls(
            name=data["name"],
            key=data["key"],
            chord_data=tuple(dict(chord) for chord in data["chords"]),
            tempo=int(data["tempo"]),
            style=data["style"],
            rhythm_pattern=data["rhythm_pattern"],
            created_at=data["created_at"],
        )
