"""RhythmCompiler: expands a chord sequence and a rhythm pattern into timed note events."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, Literal, Sequence, get_args

from chordcraft.chords import Chord, Note

logger = logging.getLogger(__name__)

PatternName = Literal["block", "arpeggio", "waltz", "strum"]
PATTERN_NAMES: tuple[str, ...] = get_args(PatternName)

TICKS_PER_QUARTER = 128
STRUM_STAGGER_MS = 10.0


class Duration(Enum):
    """Nominal note lengths used by the rhythm patterns."""

    HALF = "half"
    QUARTER = "quarter"
    EIGHTH = "eighth"

    @property
    def ticks(self) -> int:
        return _DURATION_TICKS[self]

    @property
    def midi_code(self) -> str:
        """Note-length code as written by MIDI tools ("2" = half note)."""
        return _DURATION_CODES[self]

    @property
    def beats(self) -> float:
        return self.ticks / TICKS_PER_QUARTER

    def seconds(self, tempo: float) -> float:
        """Real length at *tempo* beats per minute."""
        return self.beats * 60.0 / tempo


_DURATION_TICKS: dict[Duration, int] = {
    Duration.HALF: TICKS_PER_QUARTER * 2,
    Duration.QUARTER: TICKS_PER_QUARTER,
    Duration.EIGHTH: TICKS_PER_QUARTER // 2,
}

_DURATION_CODES: dict[Duration, str] = {
    Duration.HALF: "2",
    Duration.QUARTER: "4",
    Duration.EIGHTH: "8",
}


@dataclass(frozen=True)
class NoteEvent:
    """
    One rhythmic slot of the timeline.

    Attributes:
        notes:       Notes sounding together, drawn from a single chord.
        start_tick:  Offset from the start of the timeline in MIDI ticks.
        duration:    Nominal length of the slot.
        chord_index: Position in the progression of the source chord.
        stagger_ms:  Per-note attack delay for strummed events, else None.
    """

    notes: tuple[Note, ...]
    start_tick: int
    duration: Duration
    chord_index: int
    stagger_ms: float | None = None

    @property
    def is_strum(self) -> bool:
        return self.stagger_ms is not None

    @property
    def end_tick(self) -> int:
        return self.start_tick + self.duration.ticks

    def start_seconds(self, tempo: float) -> float:
        return self.start_tick / TICKS_PER_QUARTER * 60.0 / tempo

    def note_offsets_ms(self) -> tuple[float, ...]:
        """Attack delay of each note relative to the event start."""
        step = self.stagger_ms or 0.0
        return tuple(index * step for index in range(len(self.notes)))


# ── Patterns ─────────────────────────────────────────────────────────────────

Step = tuple[tuple[Note, ...], Duration]


class RhythmPattern(ABC):
    """
    Strategy that turns one chord into a run of consecutive (notes, duration) steps.
    """

    name: str = ""
    stagger_ms: float | None = None

    @abstractmethod
    def steps(self, chord: Chord) -> list[Step]:
        """Consecutive steps for *chord*, each starting where the previous ends."""


class BlockPattern(RhythmPattern):
    """The whole chord for a half note."""

    name = "block"

    def steps(self, chord: Chord) -> list[Step]:
        return [(chord.notes, Duration.HALF)]


class ArpeggioPattern(RhythmPattern):
    """Each chord tone alone for an eighth note, lowest first."""

    name = "arpeggio"

    def steps(self, chord: Chord) -> list[Step]:
        return [((note,), Duration.EIGHTH) for note in chord.notes]


class WaltzPattern(RhythmPattern):
    """
    Three beats per chord: the bass note for a quarter, then the upper
    tones twice as eighths.
    """

    name = "waltz"

    def steps(self, chord: Chord) -> list[Step]:
        bass, upper = chord.notes[:1], chord.notes[1:]
        return [(bass, Duration.QUARTER), (upper, Duration.EIGHTH), (upper, Duration.EIGHTH)]


class StrumPattern(RhythmPattern):
    """The whole chord for a half note, each tone attacked slightly after the one below."""

    name = "strum"
    stagger_ms = STRUM_STAGGER_MS

    def steps(self, chord: Chord) -> list[Step]:
        return [(chord.notes, Duration.HALF)]


PATTERNS: dict[str, type[RhythmPattern]] = {
    pattern.name: pattern
    for pattern in (BlockPattern, ArpeggioPattern, WaltzPattern, StrumPattern)
}


def get_pattern(name: str) -> RhythmPattern:
    """
    Instantiate a rhythm pattern by name.

    Raises:
        ValueError: For an unknown pattern name.
    """
    try:
        return PATTERNS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown rhythm pattern '{name}'. Use one of: {', '.join(PATTERN_NAMES)}."
        ) from None


# ── Compiler ─────────────────────────────────────────────────────────────────

def compile_events(chords: Sequence[Chord], pattern: str | RhythmPattern) -> Iterator[NoteEvent]:
    """
    Expand *chords* into note events in performance order.

    The result is a one-shot iterator; materialise it with ``list()`` when it
    has to be walked more than once.

    Args:
        chords:  The progression, in playing order.
        pattern: A pattern name ("block", "arpeggio", "waltz", "strum") or instance.

    Raises:
        ValueError: For an unknown pattern name (raised on the first ``next()``).
    """
    strategy = get_pattern(pattern) if isinstance(pattern, str) else pattern
    logger.debug("Compiling %d chord(s) with %s pattern", len(chords), strategy.name)

    tick = 0
    for chord_index, chord in enumerate(chords):
        for notes, duration in strategy.steps(chord):
            yield NoteEvent(
                notes=tuple(notes),
                start_tick=tick,
                duration=duration,
                chord_index=chord_index,
                stagger_ms=strategy.stagger_ms,
            )
            tick += duration.ticks


def timeline_seconds(events: Iterable[NoteEvent], tempo: float) -> float:
    """Total nominal length of a timeline at *tempo* beats per minute."""
    return sum(event.duration.seconds(tempo) for event in events)
