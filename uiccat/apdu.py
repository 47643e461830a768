"""Builders for the APDU commands sent to the crypto application.

Every builder returns the command as an upper-case hex string, ready to be
wrapped into an ``AT+CGLA`` request.
"""

from __future__ import annotations

CRYPTO_AID = "F04D4552499301"


def _byte(value: int) -> str:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"value {value} does not fit into one byte")
    return f"{value:02X}"


def _word(value: int) -> str:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"value {value} does not fit into two bytes")
    return f"{value:04X}"


def _with_data(header: str, data: bytes) -> str:
    return header + _byte(len(data)) + bytes(data).hex().upper()


def select_aid(aid: str) -> str:
    """SELECT by DF name (AID given as hex text), no response data."""
    if len(aid) % 2:
        raise ValueError("AID must hold an even number of hex digits")
    return "00A4040C" + _byte(len(aid) // 2) + aid


def select_crypto_app() -> str:
    """SELECT the crypto application by its AID."""
    return select_aid(CRYPTO_AID)


def select_first_file_cur_dir_fcp() -> str:
    """SELECT the first file of the current directory, returning its FCP."""
    return "00A40004"


def select_next_file_cur_dir_fcp() -> str:
    """SELECT the next file of the current directory, returning its FCP."""
    return "00A40006"


def select_fid_no_rsp(fid: int) -> str:
    """SELECT a file by its identifier without response data."""
    return "00A4000C" + _byte(2) + _word(fid)


def select_fid_fcp(fid: int) -> str:
    """SELECT a file by its identifier, returning its FCP."""
    return "00A40004" + _byte(2) + _word(fid)


def set_lcs_use() -> str:
    """ACTIVATE FILE: move the current file to the 'Use' life cycle state."""
    return "00440000"


def get_challenge(num_bytes: int) -> str:
    """GET CHALLENGE for ``num_bytes`` random bytes."""
    return "00840000" + _byte(num_bytes)


def get_challenge_4_bytes() -> str:
    """GET CHALLENGE for four random bytes."""
    return get_challenge(4)


def create_file(fcp: bytes) -> str:
    """CREATE FILE with the given FCP template."""
    return _with_data("00E00000", fcp)


def delete_current_file() -> str:
    """DELETE FILE for the currently selected file."""
    return "00E40000"


def append_record(record: bytes) -> str:
    """APPEND RECORD to the currently selected record file."""
    return _with_data("00E20000", record)


def change_reference_data_pin(passwd: bytes) -> str:
    """CHANGE REFERENCE DATA setting a new PIN in the current key file."""
    return _with_data("00240100", passwd)


def update_binary(offset: int, data: bytes) -> str:
    """UPDATE BINARY writing ``data`` at ``offset``."""
    return _with_data("00D6" + _word(offset), data)


def read_binary(offset: int, chunk_size: int) -> str:
    """READ BINARY of ``chunk_size`` bytes from ``offset``."""
    return "00B0" + _word(offset) + _byte(chunk_size)


def verify_pin(key_id: int, passwd: bytes) -> str:
    """VERIFY the PIN of key ``key_id``."""
    return _with_data("002000" + _byte(key_id), passwd)