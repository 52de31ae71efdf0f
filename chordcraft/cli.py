"""chordcraft CLI entry point."""

import asyncio
import logging
import random
import sys
from typing import Callable

import click

from chordcraft import __version__
from chordcraft.chords import Chord
from chordcraft.midi_exporter import MidiExporter, midi_filename
from chordcraft.pitch import NOTE_FREQUENCIES, UnknownPitchClassError
from chordcraft.player import ProgressionPlayer
from chordcraft.progression import (
    DEFAULT_PROGRESSION_LENGTH,
    MAX_PROGRESSION_LENGTH,
    MIN_PROGRESSION_LENGTH,
    STYLES,
    generate_progression,
    set_inversion,
)
from chordcraft.rhythm import PATTERN_NAMES, compile_events, timeline_seconds
from chordcraft.scales import MODES, Scale, generate_scale
from chordcraft.synth import AudioUnavailableError

MIN_TEMPO = 60
MAX_TEMPO = 200
DEFAULT_TEMPO = 120


def _parse_inversions(values: tuple[str, ...]) -> list[tuple[int, int]]:
    """Parse repeated ``INDEX:INVERSION`` options, e.g. ``--invert 2:1``."""
    parsed: list[tuple[int, int]] = []
    for value in values:
        index, sep, inversion = value.partition(":")
        if not sep or not index.isdigit() or not inversion.isdigit():
            raise click.BadParameter(f"'{value}' is not INDEX:INVERSION.", param_hint="--invert")
        parsed.append((int(index), int(inversion) % 4))
    return parsed


def _print_chords(chords: list[Chord]) -> None:
    for position, chord in enumerate(chords, start=1):
        notes = " ".join(str(note) for note in chord.notes)
        click.echo(f"  {position:2d}. {chord.symbol:<7} {chord.roman_numeral or '':<5} {notes}")


def _build(
    key: str,
    mode: str,
    style: str,
    length: int,
    seed: int | None,
    invert: tuple[str, ...],
) -> tuple[Scale, list[Chord]]:
    scale = generate_scale(key, mode)
    rng = random.Random(seed) if seed is not None else None
    chords = generate_progression(scale, style, length, rng=rng)
    for index, inversion in _parse_inversions(invert):
        chords = set_inversion(chords, index, inversion)
    return scale, chords


def _fail(message: str) -> None:
    click.echo(f"  ERROR: {message}", err=True)
    sys.exit(1)


# ── Shared options ────────────────────────────────────────────────────────────

def _key_options(func: Callable) -> Callable:
    func = click.option(
        "--mode",
        type=click.Choice(MODES),
        default="major",
        show_default=True,
        help="Scale mode (natural minor for 'minor').",
    )(func)
    func = click.option(
        "--key",
        "-k",
        type=click.Choice(list(NOTE_FREQUENCIES), case_sensitive=False),
        default="C",
        show_default=True,
        help="Tonic, sharp or flat spelling.",
    )(func)
    return func


def _progression_options(func: Callable) -> Callable:
    func = click.option(
        "--invert",
        multiple=True,
        metavar="INDEX:N",
        help="Put the chord at INDEX (0-based) into inversion N. Repeatable.",
    )(func)
    func = click.option(
        "--seed",
        type=int,
        default=None,
        help="Random seed for the 'random' style.",
    )(func)
    func = click.option(
        "--length",
        "-n",
        type=click.IntRange(MIN_PROGRESSION_LENGTH, MAX_PROGRESSION_LENGTH),
        default=DEFAULT_PROGRESSION_LENGTH,
        show_default=True,
        help="Number of chords. Template styles never exceed their own size.",
    )(func)
    func = click.option(
        "--style",
        "-s",
        type=click.Choice(STYLES),
        default="pop",
        show_default=True,
        help="Progression template.",
    )(func)
    return _key_options(func)


def _rhythm_options(func: Callable) -> Callable:
    func = click.option(
        "--tempo",
        "-t",
        type=click.IntRange(MIN_TEMPO, MAX_TEMPO),
        default=DEFAULT_TEMPO,
        show_default=True,
        help="Tempo in BPM.",
    )(func)
    func = click.option(
        "--pattern",
        "-p",
        type=click.Choice(PATTERN_NAMES),
        default="block",
        show_default=True,
        help="Rhythm pattern.",
    )(func)
    return func


# ── CLI group ──────────────────────────────────────────────────────────────────

@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="chordcraft")
@click.option("--verbose", "-v", is_flag=True, help="Log library activity to stderr.")
def main(verbose: bool) -> None:
    """chordcraft — diatonic chord progression generator, player and MIDI exporter."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


# ── scale subcommand ───────────────────────────────────────────────────────────

@main.command()
@_key_options
def scale(key: str, mode: str) -> None:
    """
    List the seven diatonic chords of a key.

    \b
    Examples:
      chordcraft scale --key G
      chordcraft scale --key Eb --mode minor
    """
    try:
        result = generate_scale(key, mode)
    except UnknownPitchClassError as exc:
        _fail(str(exc))
        return

    click.echo(f"{result.key}: {' '.join(result.notes)}")
    _print_chords(list(result.chords))


# ── progression subcommand ─────────────────────────────────────────────────────

@main.command()
@_progression_options
def progression(key: str, mode: str, style: str, length: int, seed: int | None, invert: tuple[str, ...]) -> None:
    """
    Print a progression built from a style template.

    \b
    Examples:
      chordcraft progression --key A --mode minor --style lofi
      chordcraft progression --style random -n 8 --seed 7
    """
    try:
        result, chords = _build(key, mode, style, length, seed, invert)
    except (UnknownPitchClassError, ValueError) as exc:
        _fail(str(exc))
        return

    click.echo(f"{result.key} — {style} ({len(chords)} chords)")
    _print_chords(chords)


# ── export subcommand ──────────────────────────────────────────────────────────

@main.command()
@_progression_options
@_rhythm_options
@click.option(
    "--output",
    "-o",
    default=None,
    metavar="PATH",
    help="Destination MIDI file path. Defaults to <key>_<mode>_<style>_progression.mid.",
)
def export(
    key: str,
    mode: str,
    style: str,
    length: int,
    seed: int | None,
    invert: tuple[str, ...],
    pattern: str,
    tempo: int,
    output: str | None,
) -> None:
    """
    Write a progression to a MIDI file.

    \b
    Examples:
      chordcraft export --key D --style jazz --pattern waltz
      chordcraft export --style blues -p strum -t 90 -o blues.mid
    """
    resolved_output = output if output is not None else midi_filename(key, mode, style)

    try:
        result, chords = _build(key, mode, style, length, seed, invert)
    except (UnknownPitchClassError, ValueError) as exc:
        _fail(str(exc))
        return

    click.echo(f"chordcraft v{__version__}")
    click.echo(f"  Key     : {result.key}  |  Style: {style}")
    click.echo(f"  Pattern : {pattern}  |  Tempo: {tempo} BPM")
    click.echo(f"  Chords  : {' '.join(chord.symbol for chord in chords)}")
    click.echo()

    exporter = MidiExporter(tempo=tempo)
    try:
        exporter.export(compile_events(chords, pattern), resolved_output)
    except OSError as exc:
        _fail(f"Could not write MIDI file — {exc}")
        return

    click.echo(f"Done!  Wrote '{resolved_output}'.")


# ── play subcommand ────────────────────────────────────────────────────────────

async def _play(chords: list[Chord], pattern: str, tempo: int) -> None:
    def show(index: int) -> None:
        if index >= 0:
            click.echo(f"  ♪ {chords[index]}")

    player = ProgressionPlayer(on_chord_change=show)
    try:
        player.start(compile_events(chords, pattern), tempo)
        await player.wait()
    finally:
        player.close()


@main.command()
@_progression_options
@_rhythm_options
def play(
    key: str,
    mode: str,
    style: str,
    length: int,
    seed: int | None,
    invert: tuple[str, ...],
    pattern: str,
    tempo: int,
) -> None:
    """
    Play a progression through the default audio output.

    \b
    Examples:
      chordcraft play --key F --style pop --pattern arpeggio
      chordcraft play --key C# --mode minor --style lofi -t 72
    """
    try:
        result, chords = _build(key, mode, style, length, seed, invert)
    except (UnknownPitchClassError, ValueError) as exc:
        _fail(str(exc))
        return

    seconds = timeline_seconds(compile_events(chords, pattern), tempo)
    click.echo(f"Playing {result.key} {style} ({pattern}, {tempo} BPM, {seconds:.1f} s)...")

    try:
        asyncio.run(_play(chords, pattern, tempo))
    except AudioUnavailableError as exc:
        _fail(str(exc))
        return
    except KeyboardInterrupt:
        click.echo("Stopped.")
        return

    click.echo("Done.")
