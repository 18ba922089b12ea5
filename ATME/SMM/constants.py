# =============================================================================
# constants.py — Jupiter Ace Tape Timing Constants and Block Layout
# =============================================================================
#
# Every pulse width below is expressed in Z80 T-states (clock cycles) exactly
# as the Ace ROM tape routines generate and time them. Sample counts are never
# stored here: they depend on the session sample rate and are derived by
# SMM/timing.py.
#
# Source: Jupiter Ace ROM SAVE/LOAD routines (cycle counted).

# -----------------------------------------------------------------------------
# EMULATED CPU
# -----------------------------------------------------------------------------

Z80_CLOCK = 3_250_000       # Hz — Jupiter Ace Z80 clock

# -----------------------------------------------------------------------------
# PULSE WIDTHS  (high semicycle, low semicycle) in T-states
# -----------------------------------------------------------------------------

PILOT_PULSE    = (2011, 2011)
SYNC_PULSE     = (601, 791)
BIT0_PULSE     = (795, 801)
BIT1_PULSE     = (1585, 1591)
END_MARK_PULSE = (903, 4187)

# Leading/trailing silence: one "cycle" of two 6.5M T-state semicycles = 4 s.
# Long enough for a real tape motor to come up to speed.
SILENCE_PULSE  = (6_500_000, 6_500_000)
DEFAULT_SILENCE_SECONDS = (SILENCE_PULSE[0] + SILENCE_PULSE[1]) / Z80_CLOCK  # = 4.0

# Pilot tone lengths in full cycles
HEADER_PILOT_CYCLES = 8 * 512   # = 4096
DATA_PILOT_CYCLES   = 512

# Base error budget for pulse classification: half the sync high pulse.
# The Ace ROM accepts roughly this much jitter before losing the bit.
ERROR_BUDGET_T = SYNC_PULSE[0] // 2     # = 300

# -----------------------------------------------------------------------------
# PCM FORMAT LIMITS
# -----------------------------------------------------------------------------

SUPPORTED_BITS     = (8, 16, 24, 32)
SUPPORTED_CHANNELS = (1, 2)
SUPPORTED_RATES    = (22_050, 44_100, 48_000)   # rates the Ace tools offer

# Full-scale positive value per bit depth (signed magnitude).
# 8-bit PCM is unsigned with a 128 mid-point, so its swing is 127.
FULL_SCALE = {
    8:  127,
    16: 32_767,
    24: 8_388_607,
    32: 2_147_483_647,
}
UNSIGNED_OFFSET_8BIT = 128

# -----------------------------------------------------------------------------
# TAPE BLOCK LAYOUT  (byte offsets inside the 27-byte header block)
# -----------------------------------------------------------------------------

BLOCK_TYPE = 0      # 1 byte  — leading block-type tag
FILE_TYPE  = 1      # 1 byte  — 0x00 dictionary, 0x20 bytes
FILE_NAME  = 2      # 10 bytes, space padded
LENGTH     = 12     # 2 bytes LE — data payload length
ADDRESS    = 14     # 2 bytes LE — load address
CURR_WRD   = 16     # 2 bytes LE
CURRENT    = 18     # 2 bytes LE
CONTEXT    = 20     # 2 bytes LE
VOCLNK     = 22     # 2 bytes LE
STKBOT     = 24     # 2 bytes LE
CRC        = 26     # 1 byte  — XOR checksum (never checked here)

FILE_NAME_LENGTH = 10
HEADER_LENGTH    = 27
# A data block carries the LENGTH payload plus its type tag and checksum
DATA_BLOCK_OVERHEAD = 2

DICT_FILE = 0x00
BYT_FILE  = 0x20
FILE_TYPE_NAMES = {DICT_FILE: "dict", BYT_FILE: "bytes"}

# -----------------------------------------------------------------------------
# NOISE FILTER
# -----------------------------------------------------------------------------

FILTER_MIN_ORDER = 2
FILTER_MAX_ORDER = 55
