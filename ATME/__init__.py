# =============================================================================
# Ace Tape Modulation Engine (ATME)
# Jupiter Ace cassette signal encoder / decoder.
# =============================================================================
#
# ── WHAT THIS PACKAGE OWNS ────────────────────────────────────────────────────
#
# RESPONSIBLE for:
#   - Z80-cycle → sample timing
#       Every pulse width is derived from the Ace ROM's own T-state counts,
#       converted once per session with integer rounding. Encoder and decoder
#       share the same table, so what we write is what we expect to read.
#   - Waveform synthesis
#       Pilot, sync, bit 0, bit 1 and end-mark cycles rendered once into
#       wave tables and replayed for every record.
#   - Waveform recovery
#       Hysteresis edge detection, pulse-width classification within a
#       tolerance window, and a 4-state block loader.
#   - Record recovery
#       27-byte header, then a data block sized by the header LENGTH field.
#
# NOT responsible for:
#   - Audio container formats (RIFF chunk headers): libsndfile does that in
#     the WAV adapters (SGM/wav_export.py, SVM/wav_source.py).
#   - Tape-file checksums. Recovered bytes are delivered as read.
#   - TAP / hex / binary containers, disassembly, GUI.
#
# ── DATA FLOW ─────────────────────────────────────────────────────────────────
#   save: TapeRecord → WaveEncoder → raw PCM bytes → sink (file / WavSink)
#   load: source → SampleStream → EdgeDetector → WaveDecoder → RecordRecovery
#
# ── Module layout ─────────────────────────────────────────────────────────────
#   config.py   — TapeConfig, the per-session settings object
#   errors.py   — TapeError, ConfigurationError, StreamError
#   results.py  — Ok / EndOfStream / IoFailure outcomes
#   SMM/        — constants, timing model, tape block layout
#   SGM/        — waveform generation (encoder, save session, WAV export)
#   SVM/        — waveform verification / decoding (filter, stream, edges,
#                 decoder, record recovery, LOAD emulator CLI)
# =============================================================================
