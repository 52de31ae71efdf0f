"""ProgressionPlayer: schedules a note-event timeline against the asyncio clock."""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Callable, Iterable

from chordcraft.chords import Chord
from chordcraft.rhythm import Duration, NoteEvent, timeline_seconds
from chordcraft.synth import AudioUnavailableError, Synth, TriangleSynth

logger = logging.getLogger(__name__)

IDLE_CHORD_INDEX = -1


class PlaybackState(enum.Enum):
    IDLE = "idle"
    PLAYING = "playing"


class ProgressionPlayer:
    """
    Audible sink for compiled timelines.

    Owns all playback state: at most one timeline is scheduled at a time, and
    ``start`` stops any previous run before scheduling a new one. Scheduling
    uses ``loop.call_later`` on the running event loop, so ``start`` returns
    immediately and playback ends on its own when the timeline is exhausted.

    Usage from a coroutine::

        player = ProgressionPlayer()
        player.start(compile_events(chords, "strum"), tempo=96)
        await player.wait()
    """

    DEFAULT_TEMPO = 120

    def __init__(
        self,
        synth: Synth | None = None,
        on_chord_change: Callable[[int], None] | None = None,
    ) -> None:
        """
        Args:
            synth:           Sound source; a TriangleSynth when omitted.
            on_chord_change: Called with the index of the chord that starts
                             sounding, and with -1 when playback ends.
        """
        self.synth = synth if synth is not None else TriangleSynth()
        self.on_chord_change = on_chord_change
        self.tempo = self.DEFAULT_TEMPO
        self._ready = False
        self._state = PlaybackState.IDLE
        self._current_chord_index = IDLE_CHORD_INDEX
        self._handles: list[asyncio.TimerHandle] = []
        self._finished: asyncio.Future[None] | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def is_playing(self) -> bool:
        return self._state is PlaybackState.PLAYING

    @property
    def current_chord_index(self) -> int:
        """Index of the sounding chord, or -1 when idle."""
        return self._current_chord_index

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _set_chord_index(self, index: int) -> None:
        self._current_chord_index = index
        if self.on_chord_change is not None:
            self.on_chord_change(index)

    def _schedule_event(self, loop: asyncio.AbstractEventLoop, event: NoteEvent, tempo: float) -> None:
        start = event.start_seconds(tempo)
        duration = event.duration.seconds(tempo)

        self._handles.append(loop.call_later(start, self._set_chord_index, event.chord_index))

        if event.is_strum:
            for note, offset_ms in zip(event.notes, event.note_offsets_ms()):
                self._handles.append(
                    loop.call_later(start + offset_ms / 1000.0, self.synth.trigger, (note,), duration)
                )
        else:
            self._handles.append(loop.call_later(start, self.synth.trigger, event.notes, duration))

    def _finish(self) -> None:
        logger.info("Playback finished")
        self.stop()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def ensure_ready(self) -> None:
        """
        Open the audio output if it is not open yet.

        Idempotent once it has succeeded. A failure is not remembered, so the
        next explicit call tries again.

        Raises:
            AudioUnavailableError: If the platform refuses to start audio.
        """
        if self._ready:
            return
        try:
            self.synth.open()
        except AudioUnavailableError:
            logger.warning("Audio output unavailable", exc_info=True)
            raise
        self._ready = True

    def start(self, events: Iterable[NoteEvent], tempo: int = DEFAULT_TEMPO) -> None:
        """
        Schedule *events* for playback at *tempo* and return immediately.

        Must be called while an asyncio event loop is running.

        Raises:
            AudioUnavailableError: If the audio output cannot be opened.
            RuntimeError: If no event loop is running.
        """
        self.stop()
        self.ensure_ready()

        loop = asyncio.get_running_loop()
        timeline = list(events)
        self.tempo = tempo

        for event in timeline:
            self._schedule_event(loop, event, tempo)

        total = timeline_seconds(timeline, tempo)
        self._handles.append(loop.call_later(total, self._finish))
        self._finished = loop.create_future()
        self._state = PlaybackState.PLAYING

        logger.info("Playing %d event(s) at %d BPM (%.2f s)", len(timeline), tempo, total)

    def stop(self) -> None:
        """Cancel pending notes, silence the synth and return to idle. Idempotent."""
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

        if self._state is PlaybackState.IDLE:
            return

        if self._ready:
            self.synth.release_all()
        self._state = PlaybackState.IDLE
        self._set_chord_index(IDLE_CHORD_INDEX)

        if self._finished is not None and not self._finished.done():
            self._finished.set_result(None)
        self._finished = None
        logger.info("Playback stopped")

    async def wait(self) -> None:
        """Resolve once the current timeline has ended or been stopped."""
        if self._finished is not None:
            await asyncio.shield(self._finished)

    def play_chord(self, chord: Chord, tempo: int | None = None) -> None:
        """
        Sound one chord for a half note, outside of any timeline.

        Raises:
            AudioUnavailableError: If the audio output cannot be opened.
        """
        self.ensure_ready()
        self.synth.trigger(chord.notes, Duration.HALF.seconds(tempo or self.tempo))

    def close(self) -> None:
        """Stop playback and release the audio output."""
        self.stop()
        if self._ready:
            self.synth.close()
            self._ready = False
