from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any, Optional

from envgen import __version__
from envgen.cli.settings import (
    SETTINGS_EXCLUDE,
    add_settings_args,
    strip_settings_args,
    detect_command,
    load_settings,
    select_settings,
    apply_settings_to_parser,
    serialize_args,
    save_settings,
    find_subparser,
)
from envgen.core.curves import CurveKind
from envgen.envelope import Envelope
from envgen.errors import EnvelopeError
from envgen.io import read_value_curve, write_audio, write_envelope_csv
from envgen.render import OfflineContext, render_envelope

_LOGGER = logging.getLogger("envgen.cli")

CURVE_CHOICES = [kind.value for kind in CurveKind]

# options passed through to the envelope settings unchanged
_ENVELOPE_OPTIONS = (
    "curve",
    "attack_curve",
    "decay_curve",
    "release_curve",
    "delay_time",
    "attack_time",
    "hold_time",
    "decay_time",
    "release_time",
    "start_level",
    "max_level",
    "sustain_level",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _path(p: str | Path) -> Path:
    return Path(p).expanduser().resolve()


def _configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _check_timing(args: argparse.Namespace) -> None:
    if not (math.isfinite(args.sample_rate) and args.sample_rate > 0):
        raise SystemExit("--sample-rate must be > 0")
    for flag, value in (("--start", args.start), ("--release-at", args.release_at)):
        if value is not None and not (math.isfinite(value) and value >= 0):
            raise SystemExit(f"{flag} must be a finite time >= 0")


def _envelope_settings(args: argparse.Namespace) -> dict[str, Any]:
    settings: dict[str, Any] = {}
    for name in _ENVELOPE_OPTIONS:
        value = getattr(args, name, None)
        if value is not None:
            settings[name] = value

    rates: set[int] = set()
    for dest, key in (
        ("initial_curve_file", "initial_value_curve"),
        ("release_curve_file", "release_value_curve"),
    ):
        path = getattr(args, dest, None)
        if not path:
            continue
        try:
            curve, sr = read_value_curve(_path(path))
        except (OSError, RuntimeError, ValueError) as exc:
            raise SystemExit(f"Could not read value curve {path}: {exc}") from exc
        settings[key] = curve
        rates.add(sr)
        _LOGGER.info("Loaded %d-sample value curve from %s at %d Hz", len(curve), path, sr)

    if len(rates) > 1:
        raise SystemExit("Value curve files must share one sample rate.")
    if rates:
        settings["sample_rate"] = rates.pop()
    return settings


def _add_envelope_args(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("envelope")
    g.add_argument(
        "--curve",
        choices=CURVE_CHOICES,
        default="linear",
        help="Ramp law for every stage without its own override.",
    )
    for stage in ("attack", "decay", "release"):
        g.add_argument(
            f"--{stage}-curve",
            dest=f"{stage}_curve",
            choices=CURVE_CHOICES,
            default=None,
            help=f"Ramp law for the {stage} stage (overrides --curve).",
        )
    for stage in ("delay", "attack", "hold", "decay", "release"):
        g.add_argument(
            f"--{stage}-time",
            dest=f"{stage}_time",
            type=float,
            default=None,
            metavar="SECONDS",
            help=f"{stage.capitalize()} duration in seconds.",
        )
    g.add_argument("--start-level", type=float, default=None, help="Floor level (default 0).")
    g.add_argument("--max-level", type=float, default=None, help="Peak level (default 1).")
    g.add_argument(
        "--sustain-level",
        type=float,
        default=None,
        help="Sustain as a fraction of the start-to-peak range (default 1).",
    )
    g.add_argument(
        "--initial-curve-file",
        default=None,
        metavar="AUDIO",
        help="Audio file whose samples replace the attack/decay stages.",
    )
    g.add_argument(
        "--release-curve-file",
        default=None,
        metavar="AUDIO",
        help="Audio file whose samples replace the release stage.",
    )


def _add_timing_args(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--start",
        type=float,
        default=0.0,
        help="Start instant in seconds.",
    )
    p.add_argument(
        "--release-at",
        type=float,
        default=None,
        help="Release instant in seconds (omit to skip the release stage).",
    )
    p.add_argument(
        "--sample-rate",
        type=float,
        default=48000.0,
        help="Host sample rate in Hz.",
    )


# ---------------------------------------------------------------------------
# Subcommand implementations
# ---------------------------------------------------------------------------

def _cmd_schedule(args: argparse.Namespace) -> int:
    _check_timing(args)
    settings = _envelope_settings(args)
    envelope = Envelope(OfflineContext(args.sample_rate), settings)
    envelope.start(args.start)

    payload: dict[str, Any] = {
        "config": envelope.config.as_settings(),
        "attack_decay": [e.as_dict() for e in envelope.attack_decay_node.gain.events],
    }
    if args.release_at is not None:
        envelope.release(args.release_at)
        payload["release"] = [e.as_dict() for e in envelope.release_node.gain.events]
        payload["source_stop_time"] = envelope.source.stop_time
        payload["release_complete_time"] = envelope.get_release_complete_time()

    json.dump(payload, sys.stdout, indent=2)
    sys.stdout.write("\n")
    return 0


def _cmd_render(args: argparse.Namespace) -> int:
    _check_timing(args)
    out_path = _path(args.out_path)
    settings = _envelope_settings(args)

    if args.duration is not None and args.duration <= 0:
        raise SystemExit("--duration must be > 0")

    values = render_envelope(
        settings,
        start=args.start,
        release=args.release_at,
        duration=args.duration,
        sample_rate=args.sample_rate,
    )

    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix.lower() == ".csv":
        write_envelope_csv(out_path, values, args.sample_rate)
    else:
        write_audio(out_path, values, int(round(args.sample_rate)), subtype=args.subtype)
    _LOGGER.info("Wrote %d samples to %s", values.shape[0], out_path)
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="envgen",
        description="DAHDSR envelope schedules: inspect events or render them offline.",
    )
    add_settings_args(parser)
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log output (-v info, -vv debug).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- schedule ----
    p_sched = subparsers.add_parser(
        "schedule",
        help="Print the automation events of one envelope as JSON.",
    )
    add_settings_args(p_sched)
    _add_timing_args(p_sched)
    _add_envelope_args(p_sched)
    p_sched.set_defaults(func=_cmd_schedule)

    # ---- render ----
    p_render = subparsers.add_parser(
        "render",
        help="Render an envelope to an audio file (WAV/FLAC) or CSV.",
    )
    add_settings_args(p_render)
    p_render.add_argument(
        "--out",
        dest="out_path",
        required=True,
        help="Output file; a .csv suffix writes (time, value) rows.",
    )
    _add_timing_args(p_render)
    p_render.add_argument(
        "--duration",
        type=float,
        default=None,
        help="Rendered length in seconds (default: until the envelope ends).",
    )
    p_render.add_argument(
        "--subtype",
        default="FLOAT",
        help='libsndfile subtype for writing (e.g. "FLOAT", "PCM_24").',
    )
    _add_envelope_args(p_render)
    p_render.set_defaults(func=_cmd_render)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    raw_argv = list(argv) if argv is not None else sys.argv[1:]
    cleaned_argv, settings_path, save_path = strip_settings_args(raw_argv)
    command = detect_command(cleaned_argv)

    if settings_path:
        settings_data = load_settings(Path(settings_path))
        settings = select_settings(settings_data, command)
        target = find_subparser(parser, command) or parser
        apply_settings_to_parser(target, settings)

    args = parser.parse_args(cleaned_argv)
    _configure_logging(args.verbose)

    if save_path:
        cmd = getattr(args, "command", command)
        target = find_subparser(parser, cmd) or parser
        settings_out = serialize_args(args, target, exclude=SETTINGS_EXCLUDE)
        save_settings(Path(save_path), settings_out, command=cmd)

    try:
        return args.func(args)
    except EnvelopeError as exc:
        _LOGGER.error("envgen %s failed: %s", args.command, exc)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
