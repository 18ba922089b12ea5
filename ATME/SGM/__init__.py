# =============================================================================
# SGM — Signal Generation Module
# Subfolder of ATME (Ace Tape Modulation Engine)
# =============================================================================
#
# Generates deterministic Jupiter Ace tape PCM streams from tape records.
#
# Modules:
#   wave_encoder.py  — wave tables and record → PCM serialization
#   save_session.py  — owns the output sink; silence, records, byte count
#   wav_export.py    — WAV sink (soundfile) and encoder CLI
#
# Constants live in ATME/SMM/constants.py
# Decoding lives in ATME/SVM/
# =============================================================================
