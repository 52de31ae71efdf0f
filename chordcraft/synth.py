"""Synth: pluggable sound sources for the progression player."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Sequence

import numpy as np

from chordcraft.chords import Note

logger = logging.getLogger(__name__)


class AudioUnavailableError(RuntimeError):
    """Raised when the audio output cannot be started."""


class Synth(ABC):
    """
    Abstract sound source driven by the player.

    ``trigger`` is always called from the player's event loop; implementations
    that render on another thread must guard their own state.
    """

    @abstractmethod
    def open(self) -> None:
        """
        Acquire the audio output.

        Raises:
            AudioUnavailableError: If the platform refuses to start audio.
        """

    @abstractmethod
    def trigger(self, notes: Sequence[Note], duration: float) -> None:
        """Attack *notes* now and release them after *duration* seconds."""

    @abstractmethod
    def release_all(self) -> None:
        """Silence every sounding voice."""

    def close(self) -> None:
        """Release the audio output. Safe to call when not open."""


# ── Waveform helpers ─────────────────────────────────────────────────────────

def triangle_wave(freq: float, samples: int, sample_rate: int, amp: float = 0.5) -> np.ndarray:
    t = np.arange(samples) / sample_rate
    return amp * (2 * np.abs(2 * (t * freq % 1) - 1) - 1)


def adsr_envelope(
    hold: float,
    attack: float,
    decay: float,
    sustain: float,
    release: float,
    sample_rate: int,
) -> np.ndarray:
    """
    Attack/decay/sustain envelope held for *hold* seconds, followed by a
    *release* tail. The result is ``hold + release`` seconds long.
    """
    hold_samples = max(1, int(sample_rate * hold))
    release_samples = int(sample_rate * release)
    attack_samples = min(int(sample_rate * attack), hold_samples)
    decay_samples = min(int(sample_rate * decay), hold_samples - attack_samples)

    envelope = np.full(hold_samples + release_samples, sustain, dtype=np.float32)
    envelope[:attack_samples] = np.linspace(0, 1, attack_samples, endpoint=False)
    end = attack_samples + decay_samples
    envelope[attack_samples:end] = np.linspace(1, sustain, decay_samples, endpoint=False)

    # Released notes fade from the level reached at the end of the hold
    envelope[hold_samples:] = np.linspace(envelope[hold_samples - 1], 0, release_samples)
    return envelope


class _Voice:
    """A pre-rendered note and its read position."""

    def __init__(self, samples: np.ndarray) -> None:
        self.samples = samples
        self.position = 0

    @property
    def finished(self) -> bool:
        return self.position >= len(self.samples)

    def read(self, frames: int) -> np.ndarray:
        chunk = self.samples[self.position:self.position + frames]
        self.position += frames
        return chunk


class TriangleSynth(Synth):
    """
    Polyphonic triangle-wave synth on a ``sounddevice`` output stream.

    Each trigger renders the whole note (envelope included) with numpy; the
    stream callback mixes the active voices block by block.
    """

    SAMPLE_RATE = 44100
    BLOCK_SIZE = 512
    ATTACK = 0.02
    DECAY = 0.1
    SUSTAIN = 0.3
    RELEASE = 1.0
    AMPLITUDE = 0.25

    def __init__(self, sample_rate: int = SAMPLE_RATE, amplitude: float = AMPLITUDE) -> None:
        self.sample_rate = sample_rate
        self.amplitude = amplitude
        self._voices: list[_Voice] = []
        self._lock = threading.Lock()
        self._stream: Any = None

    def render(self, note: Note, duration: float) -> np.ndarray:
        """Samples for one note held for *duration* seconds plus its release."""
        envelope = adsr_envelope(
            duration, self.ATTACK, self.DECAY, self.SUSTAIN, self.RELEASE, self.sample_rate
        )
        wave = triangle_wave(note.frequency, len(envelope), self.sample_rate, self.amplitude)
        return (wave * envelope).astype(np.float32)

    def _callback(self, outdata: np.ndarray, frames: int, time_info: Any, status: Any) -> None:
        if status:
            logger.warning("Audio status: %s", status)

        mix = np.zeros(frames, dtype=np.float32)
        try:
            with self._lock:
                for voice in self._voices:
                    chunk = voice.read(frames)
                    mix[:len(chunk)] += chunk
                self._voices = [voice for voice in self._voices if not voice.finished]
        except Exception:
            logger.exception("Failed to mix audio block")
        outdata[:, 0] = np.clip(mix, -1.0, 1.0)

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            # Importing fails with OSError when the PortAudio library is missing
            import sounddevice as sd
        except OSError as exc:
            raise AudioUnavailableError(f"PortAudio is not available: {exc}") from exc

        try:
            stream = sd.OutputStream(
                samplerate=self.sample_rate,
                channels=1,
                dtype="float32",
                blocksize=self.BLOCK_SIZE,
                callback=self._callback,
            )
            stream.start()
        except (sd.PortAudioError, OSError) as exc:
            raise AudioUnavailableError(f"Could not start audio output: {exc}") from exc
        self._stream = stream
        logger.info("Audio output started at %d Hz", self.sample_rate)

    def trigger(self, notes: Sequence[Note], duration: float) -> None:
        voices = [_Voice(self.render(note, duration)) for note in notes]
        with self._lock:
            self._voices.extend(voices)

    def release_all(self) -> None:
        with self._lock:
            self._voices.clear()

    def close(self) -> None:
        self.release_all()
        if self._stream is None:
            return
        self._stream.stop()
        self._stream.close()
        self._stream = None
        logger.info("Audio output closed")
