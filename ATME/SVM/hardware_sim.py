#!/usr/bin/env python3
# =============================================================================
# hardware_sim.py — Jupiter Ace LOAD Emulator
# =============================================================================
#
# Plays a tape recording into a software model of the Ace LOAD routine.
# Feed it any PCM WAV (mono or stereo, 8/16/24/32-bit) and it reports every
# tape record the Ace would have read, plus the timing windows it used.
#
# Usage:
#   python -m ATME.SVM.hardware_sim <path_to_wav>
#   python -m ATME.SVM.hardware_sim <path_to_wav> --channel left
#   python -m ATME.SVM.hardware_sim <path_to_wav> --level 0 --hysteresis 2
#   python -m ATME.SVM.hardware_sim <path_to_wav> --invert --filter
#   python -m ATME.SVM.hardware_sim <path_to_wav> --dump-blocks out_dir
#
# Output sections:
#   [1] File info          — sample rate, channels, duration, format
#   [2] Decoder config     — pulse windows, detection level, hysteresis
#   [3] Record report      — one line per recovered record
#   [4] VERDICT            — PASS if at least one complete record was read
#
# =============================================================================

from __future__ import annotations
import argparse
import logging
import os
import sys

from ATME.config import TapeConfig, CHANNEL_SELECTS
from ATME.errors import TapeError
from ATME.results import IoFailure
from ATME.SMM.tape_block import TapeRecord
from ATME.SVM.record_recovery import LoadSession
from ATME.SVM.wav_source import SoundFileSource

DIVIDER = "=" * 68


def _safe_name(name: str) -> str:
    """Tape file name usable as a path component (no separators, NULs or controls)."""
    bad = {"/", os.sep, os.altsep}
    return "".join(c if c.isprintable() and c not in bad else "_" for c in name)


def dump_blocks(records: list[TapeRecord], out_dir: str) -> None:
    """Write each record as NN_name.hdr / NN_name.dat block files."""
    os.makedirs(out_dir, exist_ok=True)
    for i, r in enumerate(records):
        stem = f"{i:02d}_{_safe_name(r.filename) or 'noname'}"
        with open(os.path.join(out_dir, stem + ".hdr"), "wb") as f:
            f.write(r.header)
        with open(os.path.join(out_dir, stem + ".dat"), "wb") as f:
            f.write(r.data[: max(r.data_count, 0)])


def run_sim(wav_path: str, base: TapeConfig, dump_dir: str | None = None) -> bool:
    """
    Run the full LOAD pipeline on one WAV file.
    Returns True if at least one complete record was recovered.
    """
    # -----------------------------------------------------------------------
    # [1] File info
    # -----------------------------------------------------------------------
    print(f"\n{DIVIDER}")
    print(f"  Jupiter Ace LOAD Emulator")
    print(DIVIDER)

    if not os.path.exists(wav_path):
        print(f"  [!!] File not found: {wav_path}")
        return False

    source = SoundFileSource(wav_path)
    config = source.session_config(base)
    print(f"  File     : {os.path.basename(wav_path)}")
    print(f"  Rate     : {source.sample_rate} Hz")
    print(f"  Channels : {source.channels}")
    print(f"  Duration : {source.frames / source.sample_rate:.2f} s  ({source.frames:,} frames)")
    print(f"  Format   : {source.subtype}")

    try:
        session = LoadSession(source, config)
    except TapeError:
        source.close()
        raise

    # -----------------------------------------------------------------------
    # [2] Decoder config
    # -----------------------------------------------------------------------
    print(f"\n  -- Decoder Configuration --")
    print(session.timing.summary())
    print(f"  Detection level    : {config.detection_level_percent:+.1f}%  "
          f"(hysteresis ±{config.hysteresis_percent:.1f}%)")
    print(f"  Channel            : {config.channel_select}"
          f"{'  inverted' if config.invert else ''}"
          f"{'  filtered' if config.filter_enabled else ''}")

    # -----------------------------------------------------------------------
    # [3] Record report
    # -----------------------------------------------------------------------
    with session:
        records = session.records()
    recovery = session.recovery

    print(f"\n  -- Record Report --")
    if not records:
        print(f"  (no records recovered)")
    else:
        print(f"  {'#':>3}  {'Type':<6} {'Name':<12} {'Length':>6}  {'Addr':>6}  {'Data':>11}")
        print(f"  {'-'*3}  {'-'*6} {'-'*12} {'-'*6}  {'-'*6}  {'-'*11}")
        for i, r in enumerate(records):
            got  = f"{r.data_count}/{len(r.data)}"
            flag = "" if r.complete else "  SHORT"
            print(f"  {i:>3}  {r.file_type:<6} {r.filename:<12} {r.length:>6}  "
                  f"{r.address:>#6x}  {got:>11}{flag}")
    print(f"  Rejected headers  : {recovery.headers_rejected}")
    print(f"  Rejected sizes    : {recovery.sizes_rejected}")
    print(f"  Short data blocks : {recovery.short_blocks}")
    print(f"  Samples read      : {session.stream.position:,}")

    if dump_dir and records:
        dump_blocks(records, dump_dir)
        print(f"  Blocks written to : {dump_dir}")

    # -----------------------------------------------------------------------
    # [4] Verdict
    # -----------------------------------------------------------------------
    complete = [r for r in records if r.complete]
    result   = session.result
    print(f"\n{DIVIDER}")
    if isinstance(result, IoFailure):
        print(f"  VERDICT: FAIL — stream error: {result.reason}")
    elif complete:
        print(f"  VERDICT: PASS — {len(complete)} complete record(s) loaded")
    else:
        print(f"  VERDICT: FAIL — the Ace would not load anything from this tape")
    print(f"{DIVIDER}\n")

    return bool(complete) and not isinstance(result, IoFailure)


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------
def main() -> None:
    parser = argparse.ArgumentParser(
        description="Jupiter Ace tape LOAD emulator",
    )
    parser.add_argument("wav", help="Path to a PCM WAV tape recording")
    parser.add_argument(
        "--channel", choices=CHANNEL_SELECTS, default="mix",
        help="Which channel to read from a stereo file, default mix",
    )
    parser.add_argument(
        "--level", type=float, default=5.0,
        help="Detection level in %% of full scale (-100..100), default 5",
    )
    parser.add_argument(
        "--hysteresis", type=float, default=1.0,
        help="Hysteresis half-width in %% of full scale, default 1",
    )
    parser.add_argument("--invert", action="store_true", help="Swap high and low levels")
    parser.add_argument("--filter", action="store_true", help="Moving-average input filter")
    parser.add_argument("--dump-blocks", metavar="DIR", help="Write recovered blocks to DIR")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    base = TapeConfig(
        channel_select=args.channel,
        detection_level_percent=args.level,
        hysteresis_percent=args.hysteresis,
        invert=args.invert,
        filter_enabled=args.filter,
    )
    try:
        ok = run_sim(args.wav, base, args.dump_blocks)
    except TapeError as exc:
        print(f"  [!!] {exc}")
        sys.exit(2)
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
