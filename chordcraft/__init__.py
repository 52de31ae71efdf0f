"""chordcraft: diatonic chord progressions, rhythm timelines, playback and MIDI export."""

__version__ = "0.1.0"
