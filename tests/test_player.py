"""Tests for ProgressionPlayer against a recording synth (no audio device needed)."""

import asyncio

import pytest

from chordcraft.chords import build_chord
from chordcraft.player import PlaybackState, ProgressionPlayer
from chordcraft.rhythm import compile_events
from chordcraft.synth import AudioUnavailableError, Synth

# Fast enough that a half note lasts 0.1 s
TEMPO = 1200


class RecordingSynth(Synth):
    def __init__(self) -> None:
        self.opened = 0
        self.closed = 0
        self.released = 0
        self.triggers: list[tuple[float, tuple[str, ...], float]] = []

    def open(self) -> None:
        self.opened += 1

    def trigger(self, notes, duration) -> None:
        now = asyncio.get_running_loop().time()
        self.triggers.append((now, tuple(str(note) for note in notes), duration))

    def release_all(self) -> None:
        self.released += 1

    def close(self) -> None:
        self.closed += 1


class BrokenSynth(RecordingSynth):
    def open(self) -> None:
        self.opened += 1
        raise AudioUnavailableError("no device")


@pytest.fixture
def chords():
    return [build_chord("C", "major"), build_chord("F", "major")]


@pytest.mark.asyncio
async def test_block_playback_runs_to_completion(chords) -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.start(compile_events(chords, "block"), TEMPO)
    assert player.is_playing
    assert player.state is PlaybackState.PLAYING

    await asyncio.wait_for(player.wait(), timeout=2)

    assert not player.is_playing
    assert player.current_chord_index == -1
    assert [notes for _, notes, _ in synth.triggers] == [("C4", "E4", "G4"), ("F4", "A4", "C5")]
    assert all(duration == pytest.approx(0.1) for _, _, duration in synth.triggers)
    assert synth.triggers[1][0] - synth.triggers[0][0] == pytest.approx(0.1, abs=0.05)


@pytest.mark.asyncio
async def test_strum_triggers_notes_one_by_one(chords) -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.start(compile_events(chords[:1], "strum"), TEMPO)
    await asyncio.wait_for(player.wait(), timeout=2)

    assert [notes for _, notes, _ in synth.triggers] == [("C4",), ("E4",), ("G4",)]
    times = [when for when, _, _ in synth.triggers]
    assert times == sorted(times)


@pytest.mark.asyncio
async def test_chord_index_is_reported(chords) -> None:
    seen: list[int] = []
    player = ProgressionPlayer(RecordingSynth(), on_chord_change=seen.append)

    player.start(compile_events(chords, "waltz"), TEMPO)
    await asyncio.wait_for(player.wait(), timeout=2)

    assert seen == [0, 0, 0, 1, 1, 1, -1]


@pytest.mark.asyncio
async def test_stop_cancels_pending_notes(chords) -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.start(compile_events(chords, "block"), TEMPO)
    player.stop()
    await asyncio.sleep(0.3)

    assert synth.triggers == []
    assert synth.released == 1
    assert not player.is_playing


@pytest.mark.asyncio
async def test_stop_is_idempotent(chords) -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.stop()
    player.start(compile_events(chords, "block"), TEMPO)
    player.stop()
    player.stop()

    assert synth.released == 1
    await player.wait()


@pytest.mark.asyncio
async def test_stop_releases_waiters(chords) -> None:
    player = ProgressionPlayer(RecordingSynth())
    player.start(compile_events(chords, "block"), 60)

    waiter = asyncio.ensure_future(player.wait())
    await asyncio.sleep(0)
    player.stop()

    await asyncio.wait_for(waiter, timeout=1)


@pytest.mark.asyncio
async def test_restart_replaces_the_previous_timeline(chords) -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.start(compile_events(chords, "block"), 60)
    player.start(compile_events(chords[1:], "block"), TEMPO)
    await asyncio.wait_for(player.wait(), timeout=2)

    assert [notes for _, notes, _ in synth.triggers] == [("F4", "A4", "C5")]
    assert synth.opened == 1


@pytest.mark.asyncio
async def test_audio_failure_is_raised_and_retried(chords) -> None:
    synth = BrokenSynth()
    player = ProgressionPlayer(synth)

    with pytest.raises(AudioUnavailableError):
        player.start(compile_events(chords, "block"), TEMPO)
    assert not player.is_playing
    assert synth.opened == 1

    with pytest.raises(AudioUnavailableError):
        player.ensure_ready()
    assert synth.opened == 2


def test_ensure_ready_opens_once() -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.ensure_ready()
    player.ensure_ready()

    assert synth.opened == 1


@pytest.mark.asyncio
async def test_play_chord_sounds_a_half_note() -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.play_chord(build_chord("A", "minor"), tempo=120)

    assert [(notes, duration) for _, notes, duration in synth.triggers] == [(("A4", "C5", "E5"), 1.0)]
    assert not player.is_playing


def test_close_releases_the_synth() -> None:
    synth = RecordingSynth()
    player = ProgressionPlayer(synth)

    player.close()
    assert synth.closed == 0

    player.ensure_ready()
    player.close()
    assert synth.closed == 1
