# =============================================================================
# ATME/SMM/__init__.py — Signal Mapping Module
# =============================================================================
#
# The SMM is the single source of truth for Jupiter Ace tape standards: the
# Z80 clock, every pulse width in T-states, pilot lengths, and the tape block
# byte layout.
#
# All other ATME sub-modules import timing and layout from here.
# Never define tape constants outside this module.
#
# Sub-modules:
#   constants.py   — clock, pulse widths, PCM limits, header offsets
#   timing.py      — TimingModel: cycles → samples, tolerance
#   tape_block.py  — TapeRecord: header/data block pair and field views
# =============================================================================
