"""Main entry point for the Dhwani CLI."""

import sys
import time
import argparse
from collections import Counter
from typing import List, Optional

from ..core.config import ConfigManager, ESTIMATORS
from ..core.factory import ComponentFactory
from ..errors import ConfigurationError
from ..logging_config import get_logger, setup_logging
from ..note_types import NoteEvent
from ..scale import ScaleTable, octave_name

logger = get_logger("dhwani.cli")

FLAT_CENTS = -20.0
SHARP_CENTS = 20.0
PERFECT_CENTS = 10.0


def tuning_label(cents: float) -> str:
    """Flat/natural/sharp marker for a deviation, starred when nearly exact."""
    if cents < FLAT_CENTS:
        return "♭"
    if cents > SHARP_CENTS:
        return "♯"
    return "♮*" if abs(cents) < PERFECT_CENTS else "♮"


def format_event(event: NoteEvent) -> str:
    sign = "+" if event.cents > 0 else ""
    return (
        f"[{event.timestamp:7.2f}s] {event.swar:<3} {octave_name(event.octave):<8} "
        f"{event.frequency:7.2f} Hz  {sign}{event.cents:.0f} cents {tuning_label(event.cents)}"
    )


def print_scale(tonic: float, octaves) -> None:
    table = ScaleTable(tonic, octaves)
    print(f"Sa = {tonic:.2f} Hz")
    print(f"{'Swar':<5}{'Ratio':>6}" + "".join(f"{octave_name(o):>10}" for o in table.octaves))
    for degree in table.DEGREES:
        row = "".join(f"{table[o][degree.name]:>10.2f}" for o in table.octaves)
        print(f"{degree.name:<5}{str(degree.ratio):>6}" + row)


def run_analyze(factory: ComponentFactory, args) -> int:
    """Stream a file through a session and print every swar change."""
    try:
        provider = factory.create_audio_input(file_path=args.file, realtime=False, gain=args.gain)
    except (OSError, RuntimeError) as e:
        print(f"Cannot read {args.file}: {e}", file=sys.stderr)
        return 1
    service = factory.create_tuner_service(audio_input=provider, **_overrides(args))

    changes: List[NoteEvent] = []
    counts: Counter = Counter()

    def on_note_event(event: NoteEvent) -> None:
        counts[(event.swar, event.octave)] += 1
        if event.changed:
            changes.append(event)
            print(format_event(event))

    service.start(on_note_event)
    try:
        provider.wait()
    finally:
        service.stop()

    print(f"\n{len(changes)} swar changes, {sum(counts.values())} voiced frames")
    for (swar, octave), count in counts.most_common():
        print(f"  {swar:<3} {octave_name(octave):<8} {count} frames")
    return 0


def run_listen(factory: ComponentFactory, args) -> int:
    """Live tuning from an input device until the duration elapses or Ctrl-C."""
    audio_overrides = {"device_id": args.device}
    if args.sample_rate:
        audio_overrides["sample_rate"] = args.sample_rate
    provider = factory.create_audio_input(**audio_overrides)
    service = factory.create_tuner_service(audio_input=provider, **_overrides(args))

    def on_note_event(event: NoteEvent) -> None:
        print(format_event(event), flush=True)

    print(f"Listening (Sa = {service.session.config.tonic:.2f} Hz), Ctrl-C to stop")
    service.start(on_note_event)
    try:
        deadline = None if args.duration is None else time.monotonic() + args.duration
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.1)
    except KeyboardInterrupt:
        print("\nStopped by user")
    finally:
        service.stop()
    return 0


def run_devices() -> int:
    """Print every audio device that can record."""
    # Imported here so that the other commands work without PortAudio
    from ..services.live_audio import list_input_devices

    devices = list_input_devices()
    if not devices:
        print("No audio input devices found")
        return 1
    for index, name, rate in devices:
        print(f"{index:>3}  {name}  ({rate:.0f} Hz)")
    return 0


def _overrides(args) -> dict:
    return {
        "tonic": args.tonic,
        "threshold": args.threshold,
        "hold_time_ms": args.hold_ms,
        "range_cents": args.range_cents,
        "estimator": args.estimator,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dhwani - Hindustani vocal tuner")
    parser.add_argument("--config-dir", default=None, help="Configuration directory")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    tuning = argparse.ArgumentParser(add_help=False)
    tuning.add_argument("--tonic", type=float, default=None, help="Sa frequency in Hz")
    tuning.add_argument(
        "--threshold", type=float, default=None, help="YIN threshold in (0, 1)"
    )
    tuning.add_argument(
        "--hold-ms", type=float, default=None, help="Hold time before a swar may change"
    )
    tuning.add_argument(
        "--range-cents", type=float, default=None, help="Acceptance half-width per swar"
    )
    tuning.add_argument(
        "--estimator", choices=ESTIMATORS, default=None, help="Pitch estimation algorithm"
    )

    scale_parser = subparsers.add_parser("scale", help="Print the swar frequency table")
    scale_parser.add_argument("--tonic", type=float, default=None, help="Sa frequency in Hz")

    analyze_parser = subparsers.add_parser(
        "analyze", parents=[tuning], help="Run an audio file through the tuner"
    )
    analyze_parser.add_argument("file", help="WAV/FLAC/OGG file to analyze")
    analyze_parser.add_argument("--gain", type=float, default=1.0, help="Input gain")

    listen_parser = subparsers.add_parser(
        "listen", parents=[tuning], help="Tune live from a microphone"
    )
    listen_parser.add_argument("--device", type=int, default=None, help="Audio input device ID")
    listen_parser.add_argument(
        "--sample-rate", type=int, default=None, help="Audio sample rate in Hz"
    )
    listen_parser.add_argument(
        "--duration", type=float, default=None, help="Stop after this many seconds"
    )

    subparsers.add_parser("devices", help="List audio input devices")

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        args: Command line arguments, or None to use sys.argv

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.command is None:
        parser.print_help()
        return 1

    setup_logging(level="DEBUG" if parsed_args.debug else None)

    try:
        factory = ComponentFactory(ConfigManager(parsed_args.config_dir))
        if parsed_args.command == "scale":
            config = factory.tuner_config(tonic=parsed_args.tonic)
            print_scale(config.tonic, config.octaves)
            return 0
        if parsed_args.command == "analyze":
            return run_analyze(factory, parsed_args)
        if parsed_args.command == "devices":
            return run_devices()
        return run_listen(factory, parsed_args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except Exception:
        logger.exception("Unhandled error")
        raise


if __name__ == "__main__":
    sys.exit(main())
