"""MidiExporter: serialises a note-event timeline into a Standard MIDI File."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Iterable

from midiutil import MIDIFile

from chordcraft.rhythm import TICKS_PER_QUARTER, NoteEvent

logger = logging.getLogger(__name__)

# midiutil writes Format 1 files: the tempo lands in its own conductor track
# and all notes go to the single instrument track.
TRACK_INSTRUMENT = 0
CHANNEL = 0

#: Tick offset between successive tones of a strummed chord
STRUM_TICKS_PER_NOTE = 2


@dataclass(frozen=True)
class MidiNote:
    """A single note as it will be written to the track."""

    pitch: int
    start_tick: int
    duration_ticks: int
    duration_code: str


def midi_filename(key: str, mode: str, style: str) -> str:
    """Download name for an exported progression, e.g. "C_major_pop_progression.mid"."""
    return f"{key}_{mode}_{style}_progression.mid"


class MidiExporter:
    """
    Writes a single-instrument MIDI file from a list of NoteEvents.

    Track layout
    ------------
    Tempo meta-event first, then a program change, then one note-on/note-off
    pair per note of every event.

    Timing
    ------
    Start ticks are taken from the events (accumulated nominal durations at
    128 ticks per quarter note: half=256, quarter=128, eighth=64). Strummed
    events are approximated in the tick domain: note *i* of the chord starts
    ``i * 2`` ticks late, whatever the tempo.
    """

    DEFAULT_TEMPO = 120    # BPM
    DEFAULT_VELOCITY = 100  # MIDI velocity (0-127)
    PROGRAM = 1            # General MIDI program number
    TRACK_NAME = "Chord Progression"

    def __init__(
        self,
        tempo: int = DEFAULT_TEMPO,
        velocity: int = DEFAULT_VELOCITY,
    ) -> None:
        """
        Args:
            tempo:    Playback tempo in beats per minute.
            velocity: MIDI note-on velocity for every note.
        """
        self.tempo = tempo
        self.velocity = velocity

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ticks_to_beats(self, ticks: int) -> float:
        return ticks / TICKS_PER_QUARTER

    def _build_midi(self, events: Iterable[NoteEvent]) -> MIDIFile:
        midi = MIDIFile(
            numTracks=1,
            removeDuplicates=False,
            deinterleave=False,
            ticks_per_quarternote=TICKS_PER_QUARTER,
        )
        midi.addTempo(TRACK_INSTRUMENT, 0, self.tempo)
        midi.addTrackName(TRACK_INSTRUMENT, 0, self.TRACK_NAME)
        midi.addProgramChange(TRACK_INSTRUMENT, CHANNEL, 0, self.PROGRAM)

        for note in self.build_notes(events):
            midi.addNote(
                track=TRACK_INSTRUMENT,
                channel=CHANNEL,
                pitch=note.pitch,
                time=self._ticks_to_beats(note.start_tick),
                duration=self._ticks_to_beats(note.duration_ticks),
                volume=self.velocity,
            )
        return midi

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_notes(self, events: Iterable[NoteEvent]) -> list[MidiNote]:
        """
        Flatten events into the notes that will be written, in event order.

        Args:
            events: Compiled timeline (consumed once).

        Returns:
            One MidiNote per note of every event.
        """
        notes: list[MidiNote] = []
        for event in events:
            for index, note in enumerate(event.notes):
                offset = index * STRUM_TICKS_PER_NOTE if event.is_strum else 0
                notes.append(
                    MidiNote(
                        pitch=note.midi_number,
                        start_tick=event.start_tick + offset,
                        duration_ticks=event.duration.ticks,
                        duration_code=event.duration.midi_code,
                    )
                )
        return notes

    def to_bytes(self, events: Iterable[NoteEvent]) -> bytes:
        """Render the timeline to the bytes of a Standard MIDI File."""
        buffer = io.BytesIO()
        self._build_midi(events).writeFile(buffer)
        return buffer.getvalue()

    def export(self, events: Iterable[NoteEvent], output_path: str) -> None:
        """
        Render the timeline and write it to *output_path*.

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        data = self.to_bytes(events)
        with open(output_path, "wb") as f:
            f.write(data)
        logger.info("Wrote %d bytes of MIDI to %s", len(data), output_path)
