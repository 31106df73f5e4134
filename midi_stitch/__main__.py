from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from midi_stitch.util.config import AppConfig, default_config_path, load_config


def _setup_logging(cfg: AppConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, cfg.log_level, logging.WARNING)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s" if verbose else "%(message)s",
    )


def _split_repeat(arg: str) -> tuple[str, object]:
    """``song.mid@3`` -> ("song.mid", "3"); no suffix means repeat 1."""
    path, sep, rep = arg.rpartition("@")
    if sep and path and rep.strip().isdigit():
        return path, rep
    return arg, 1


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="midi-stitch",
        add_help=True,
        formatter_class=argparse.RawTextHelpFormatter,
        description=(
            "midi-stitch — play MIDI files back to back in one combined file\n\n"
            "Tempo and time signature come from the first file; track i of every\n"
            "file lands on track i of the output.\n"
        ),
    )

    p.add_argument("--version", action="store_true", help="Print version and exit.")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable verbose logging.")
    p.add_argument("--config", default=None, help=f"Config file (default: {default_config_path()})")

    sub = p.add_subparsers(dest="cmd")

    comb = sub.add_parser("combine", help="Combine MIDI files in order (append @N to repeat a file N times).")
    comb.add_argument("inputs", nargs="*", help="Input files, e.g. intro.mid@2 verse.mid")
    comb.add_argument("--plan", default=None, help="YAML merge plan (inputs/repeat/ppq/output).")
    comb.add_argument("-o", "--output", default=None, help="Output .mid path")
    comb.add_argument("--ppq", type=int, default=None, help="Resolution of the combined file (default 480)")
    comb.add_argument(
        "--scale-durations",
        action="store_true",
        help="Rescale note durations to the combined resolution (start ticks are always rescaled).",
    )
    comb.add_argument("--strict", action="store_true", help="Fail if any input is not a valid MIDI file.")
    comb.add_argument("--json", default=None, help="Also write the combined document as JSON to this path.")

    insp = sub.add_parser("inspect", help="Summarize a MIDI file (resolution, tracks, notes, tempo).")
    insp.add_argument("input", help="Path to a .mid file")
    insp.add_argument("--json", action="store_true", help="Print the parsed document as JSON.")

    return p


def _cmd_combine(args: argparse.Namespace, cfg: AppConfig) -> None:
    from midi_stitch.io.midi import export_midi
    from midi_stitch.io.document_json import save_document
    from midi_stitch.io.plan import load_plan
    from midi_stitch.merge import CombineError, combine
    from midi_stitch.playlist import load_inputs
    from midi_stitch.util.validate import parse_ppq

    entries: list[tuple[str, object]] = []
    plan_ppq: int | None = None
    plan_output: str | None = None

    if args.plan:
        try:
            plan = load_plan(args.plan)
        except (OSError, ValueError) as e:
            raise SystemExit(f"ERROR: could not load plan {args.plan} ({e})")
        entries += [(ent.path, ent.repeat) for ent in plan.inputs]
        plan_ppq, plan_output = plan.ppq, plan.output

    entries += [_split_repeat(a) for a in args.inputs]

    res = load_inputs(entries)
    for s in res.skipped:
        print(f"skipped (not a .mid/.midi file): {s}", file=sys.stderr)
    for err in res.errors:
        print(err, file=sys.stderr)
    if res.errors and args.strict:
        raise SystemExit("ERROR: invalid inputs (see above)")

    try:
        ppq = parse_ppq(args.ppq if args.ppq is not None else (plan_ppq or cfg.default_ppq))
    except ValueError as e:
        raise SystemExit(f"ERROR: {e}")

    try:
        combined = combine(res.inputs, ppq, scale_durations=args.scale_durations)
    except CombineError as e:
        raise SystemExit(f"ERROR: {e}")

    out = args.output or plan_output or str(Path(cfg.output_dir) / "combined.mid")
    result = export_midi(combined, out)
    print(f"wrote: {result.path}")
    print(f"- files: {len(res.inputs)}")
    print(f"- tracks: {len(combined.tracks)}")
    print(f"- notes: {combined.note_count()}")
    print(f"- ppq: {result.ticks_per_beat}")

    if args.json:
        print(f"wrote: {save_document(combined, args.json)}")


def _cmd_inspect(args: argparse.Namespace) -> None:
    from midi_stitch.io.document_json import document_to_json
    from midi_stitch.io.midi import ParseError, load_midi

    try:
        doc = load_midi(args.input)
    except (OSError, ParseError) as e:
        raise SystemExit(f"ERROR: {e}")

    if args.json:
        sys.stdout.write(document_to_json(doc))
        return

    print(f"{doc.name}: ppq={doc.ppq} tracks={len(doc.tracks)} notes={doc.note_count()} end_tick={doc.end_tick()}")
    for m in doc.tempos:
        print(f"- tempo @{m.tick}: {m.bpm:.2f} bpm")
    for ts in doc.time_signatures:
        print(f"- time signature @{ts.tick}: {ts.numerator}/{ts.denominator}")
    for i, t in enumerate(doc.tracks):
        ccs = sum(len(v) for v in t.control_changes.values())
        print(
            f"- track {i} '{t.name}' ch={t.channel} program={t.program} "
            f"notes={len(t.notes)} cc={ccs} bends={len(t.pitch_bends)}"
        )


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)

    parser = build_parser()
    args = parser.parse_args(argv)

    if getattr(args, "version", False):
        from importlib.metadata import PackageNotFoundError, version

        try:
            v = version("midi-stitch")
        except PackageNotFoundError:
            v = "0.0.0"
        print(f"midi-stitch {v}")
        return

    cfg = load_config(Path(args.config).expanduser() if args.config else None)
    _setup_logging(cfg, args.verbose)

    if args.cmd == "combine":
        if not args.inputs and not args.plan:
            raise SystemExit("ERROR: combine needs input files or --plan <plan.yaml>")
        _cmd_combine(args, cfg)
        return

    if args.cmd == "inspect":
        _cmd_inspect(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
