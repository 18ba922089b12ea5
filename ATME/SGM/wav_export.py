#!/usr/bin/env python3
# =============================================================================
# wav_export.py — Encode tape blocks into a WAV file
# =============================================================================
#
# The encoder emits headerless PCM bytes. WavSink is the container side: a
# write()/flush()/close() sink that hands those bytes to libsndfile, which
# writes the RIFF headers and patches the chunk sizes itself.
#
# Usage:
#   python -m ATME.SGM.wav_export out.wav HEADER.bin DATA.bin [HEADER DATA ...]
#   python -m ATME.SGM.wav_export out.wav hdr.bin dat.bin --rate 22050 --bits 8
#   python -m ATME.SGM.wav_export out.wav hdr.bin dat.bin --stereo --volume 75
#
# Each HEADER.bin is a 27-byte header block, each DATA.bin the matching
# LENGTH+2 byte data block, both exactly as the tape-file layer built them.
# =============================================================================

from __future__ import annotations
import argparse
import logging
import os
import sys

import numpy as np
import soundfile as sf

from ATME.config import TapeConfig
from ATME.errors import TapeError, StreamError
from ATME.SMM.constants import SUPPORTED_RATES, SUPPORTED_BITS, UNSIGNED_OFFSET_8BIT
from ATME.SMM.tape_block import TapeRecord
from ATME.SGM.save_session import SaveSession

DIVIDER = "=" * 68

SUBTYPES = {8: "PCM_U8", 16: "PCM_16", 24: "PCM_24", 32: "PCM_32"}


def pcm_to_int32(raw: bytes, bits_per_sample: int, channels: int) -> np.ndarray:
    """
    Little-endian PCM bytes → left-justified int32 frames, shape (n, channels).

    libsndfile scales int32 input down to the file's own depth, so every
    depth is shifted up to fill 32 bits.
    """
    if bits_per_sample == 8:
        v = (np.frombuffer(raw, dtype=np.uint8).astype(np.int32) - UNSIGNED_OFFSET_8BIT) << 24
    elif bits_per_sample == 16:
        v = np.frombuffer(raw, dtype="<i2").astype(np.int32) << 16
    elif bits_per_sample == 24:
        b = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        v = (b[:, 0] << 8) | (b[:, 1] << 16) | (b[:, 2] << 24)
    elif bits_per_sample == 32:
        v = np.frombuffer(raw, dtype="<i4").astype(np.int32)
    else:
        raise ValueError(f"Unsupported bit depth: {bits_per_sample}")
    return v.reshape(-1, channels)


class WavSink:
    """Binary sink that writes encoder PCM into a WAV file."""

    def __init__(self, path: str, config: TapeConfig) -> None:
        self.path     = path
        self.bits     = config.bits_per_sample
        self.channels = config.channels
        try:
            self._file = sf.SoundFile(
                path, "w",
                samplerate=config.sample_rate,
                channels=config.channels,
                subtype=SUBTYPES[config.bits_per_sample],
                format="WAV",
            )
        except (RuntimeError, OSError) as exc:
            raise StreamError(f"cannot create {path!r}: {exc}") from exc

    def write(self, raw: bytes) -> int:
        try:
            self._file.write(pcm_to_int32(raw, self.bits, self.channels))
        except RuntimeError as exc:
            raise StreamError(f"write failed: {exc}") from exc
        return len(raw)

    def flush(self) -> None:
        try:
            self._file.flush()
        except RuntimeError as exc:
            raise StreamError(f"flush failed: {exc}") from exc

    def close(self) -> None:
        try:
            self._file.close()
        except RuntimeError as exc:
            raise StreamError(f"close failed: {exc}") from exc


def _read_block(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


def export_wav(out_path: str, records: list[TapeRecord], config: TapeConfig) -> bool:
    """Encode `records` into `out_path`. Prints a short report; True on success."""
    config.validate()
    session = SaveSession(WavSink(out_path, config), config)
    with session:
        session.save_all(records)
    result = session.result

    print(f"\n{DIVIDER}")
    print(f"  Jupiter Ace Tape Encoder")
    print(DIVIDER)
    print(f"  Output   : {os.path.basename(out_path)}")
    print(f"  Format   : {config.sample_rate} Hz, {config.bits_per_sample}-bit, "
          f"{'stereo' if config.channels == 2 else 'mono'}, volume {config.volume_percent}%")
    for r in records:
        print(f"  Record   : {r.file_type:<5} {r.filename!r:<14} {r.length:>6} bytes")
    duration = session.bytes_written / (config.frame_bytes * config.sample_rate)
    print(f"  PCM data : {session.bytes_written:,} bytes  ({duration:.2f} s)")

    if result.ok:
        print(f"  [PASS] {session.records_saved} record(s) written")
    else:
        print(f"  [FAIL] {result.reason}")
    print(f"{DIVIDER}\n")
    return result.ok


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------
def main() -> None:
    parser = argparse.ArgumentParser(
        description="Encode Jupiter Ace tape blocks into a WAV file",
    )
    parser.add_argument("wav", help="Output WAV path")
    parser.add_argument(
        "blocks", nargs="+",
        help="Header/data block file pairs: HEADER.bin DATA.bin [...]",
    )
    parser.add_argument(
        "--rate", type=int, default=44_100, choices=SUPPORTED_RATES,
        help="Sample rate in Hz, default 44100",
    )
    parser.add_argument(
        "--bits", type=int, default=16, choices=SUPPORTED_BITS,
        help="Bits per sample, default 16",
    )
    parser.add_argument("--stereo", action="store_true", help="Write 2 identical channels")
    parser.add_argument(
        "--volume", type=int, default=90,
        help="Output level in percent of full scale, default 90",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if len(args.blocks) % 2:
        parser.error("blocks must come in HEADER DATA pairs")

    config = TapeConfig(
        sample_rate=args.rate,
        bits_per_sample=args.bits,
        channels=2 if args.stereo else 1,
        volume_percent=args.volume,
    )

    try:
        records = []
        for hdr_path, dat_path in zip(args.blocks[::2], args.blocks[1::2]):
            record = TapeRecord(_read_block(hdr_path), _read_block(dat_path))
            record.check_layout()
            records.append(record)
        ok = export_wav(args.wav, records, config)
    except (TapeError, ValueError, OSError) as exc:
        print(f"  [!!] {exc}")
        sys.exit(2)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
