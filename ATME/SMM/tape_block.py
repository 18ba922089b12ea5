# =============================================================================
# tape_block.py — Jupiter Ace tape record (header block + data block)
# =============================================================================
#
# A tape file is two blocks, each saved behind its own pilot tone:
#
#   header (27 bytes)                     data (LENGTH + 2 bytes)
#   ┌────┬────┬──────────┬──────┬ … ┬───┐   ┌────┬────────────┬───┐
#   │type│ftyp│ name[10] │LENGTH│   │crc│   │type│ payload    │crc│
#   └────┴────┴──────────┴──────┴ … ┴───┘   └────┴────────────┴───┘
#    0    1    2          12     14   26
#
# All 16-bit fields are little-endian. The checksums are carried untouched:
# computing or checking them belongs to the tape-file layer, not the modem.
# =============================================================================

from __future__ import annotations
from typing import NamedTuple

from ATME.SMM.constants import (
    BLOCK_TYPE, FILE_TYPE, FILE_NAME, FILE_NAME_LENGTH, LENGTH, ADDRESS,
    HEADER_LENGTH, DATA_BLOCK_OVERHEAD, FILE_TYPE_NAMES,
)


def read_word(block: bytes, index: int) -> int:
    """Little-endian 16-bit word at `index`."""
    return block[index] | (block[index + 1] << 8)


def expected_data_size(header: bytes) -> int:
    """Data block size announced by a header: LENGTH + type tag + checksum."""
    return read_word(header, LENGTH) + DATA_BLOCK_OVERHEAD


class TapeRecord(NamedTuple):
    header:     bytes
    data:       bytes
    data_count: int = -1    # bytes actually recovered; -1 = not decoded

    @property
    def complete(self) -> bool:
        """True when the data block was recovered to its announced size."""
        if self.data_count < 0:
            return True
        return self.data_count == expected_data_size(self.header)

    @property
    def block_type(self) -> int:
        return self.header[BLOCK_TYPE]

    @property
    def file_type(self) -> str:
        return FILE_TYPE_NAMES.get(self.header[FILE_TYPE], f"0x{self.header[FILE_TYPE]:02X}")

    @property
    def filename(self) -> str:
        raw = self.header[FILE_NAME: FILE_NAME + FILE_NAME_LENGTH]
        return raw.decode("latin-1").rstrip(" \x00")

    @property
    def length(self) -> int:
        return read_word(self.header, LENGTH)

    @property
    def address(self) -> int:
        return read_word(self.header, ADDRESS)

    def check_layout(self) -> None:
        """Raise ValueError if the block sizes do not fit together."""
        if len(self.header) != HEADER_LENGTH:
            raise ValueError(
                f"header block must be {HEADER_LENGTH} bytes, got {len(self.header)}"
            )
        want = expected_data_size(self.header)
        if len(self.data) != want:
            raise ValueError(
                f"data block must be LENGTH+{DATA_BLOCK_OVERHEAD} = {want} bytes, "
                f"got {len(self.data)}"
            )
