# =============================================================================
# ATME/SVM/__init__.py — Signal Verification Module
# =============================================================================
#
# The SVM reads tape signals back: everything between a PCM stream and the
# recovered tape records.
#
# Sub-modules:
#   noise_filter.py     — moving-average input smoother
#   sample_stream.py    — raw PCM source, channel select, filtering
#   wav_source.py       — WAV file source (soundfile)
#   edge_detector.py    — hysteresis level classifier, pulse-width meter
#   wave_decoder.py     — block-load state machine
#   record_recovery.py  — header + data record recovery, LoadSession
#   hardware_sim.py     — Jupiter Ace LOAD emulator (CLI + importable)
# =============================================================================
