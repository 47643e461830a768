"""File-system operations on the crypto application of the secure element.

The functions here build FCP templates for the file kinds the application
knows (DF, EF.ARR, key files and binary files) and drive the APDU exchanges
that create, fill, read and delete them over an open logical channel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Protocol

from . import apdu as apdu_cmd
from .at_channel import AtError
from .fcp import FcpDescriptor, parse_fcp
from .response import ApduResponse

BINARY_FILE_CHUNK = 240

_STATUS_OK = 0x9000
_STATUS_FILE_NOT_FOUND = 0x6A82
_STATUS_RECORD_NOT_FOUND = 0x6A83


class FileOperationError(AtError):
    """The card rejected a file operation."""

    def __init__(self, message: str, response: ApduResponse | None = None) -> None:
        if response is not None:
            message = f"{message} (status {response.sw1:02X}{response.sw2:02X})"
        super().__init__(message)
        self.response = response


class _Channel(Protocol):
    def transmit(self, apdu: str) -> ApduResponse: ...


@dataclass(frozen=True)
class DirDescriptor:
    """Parameters of a dedicated file to create."""

    fid: int
    life_cycle_state: int
    efarr_fid: int
    efarr_line_number: int


@dataclass(frozen=True)
class EfarrDescriptor:
    """Parameters of an EF.ARR record file and the records to put into it."""

    file_size: int
    fid: int
    sfi: int
    life_cycle_state: int
    efarr_fid: int
    efarr_line_number: int
    record_size: int
    records: bytes = b""


@dataclass(frozen=True)
class KfDescriptor:
    """Parameters of a key file and the PIN to store in it."""

    fid: int
    life_cycle_state: int
    efarr_fid: int
    efarr_line_number: int
    key_algo: int
    key_purpose: int
    key_id: int
    kf_flags: int
    passwd: bytes = b""


@dataclass(frozen=True)
class BfDescriptor:
    """Parameters of a binary file and the data to write into it."""

    file_size: int
    fid: int
    life_cycle_state: int
    efarr_fid: int
    efarr_line_number: int
    data: bytes = b""


def _u8(value: int) -> bytes:
    if not 0 <= value <= 0xFF:
        raise ValueError(f"value {value} does not fit into one byte")
    return bytes([value])


def _u16(value: int) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"value {value} does not fit into two bytes")
    return value.to_bytes(2, "big")


def _tlv(tag: int, value: bytes) -> bytes:
    return bytes([tag]) + _u8(len(value)) + value


def _template(*parts: bytes) -> bytes:
    return _tlv(0x62, b"".join(parts))


def _common_tags(fid: int, lcs: int, efarr_fid: int, line: int) -> tuple[bytes, bytes, bytes]:
    return (
        _tlv(0x83, _u16(fid)),
        _tlv(0x8A, _u8(lcs)),
        _tlv(0x8B, _u16(efarr_fid) + _u8(line)),
    )


def build_df_fcp(dscr: DirDescriptor) -> bytes:
    """FCP template for creating a DF."""
    return _template(
        _tlv(0x82, bytes([0x38, 0x21])),
        *_common_tags(dscr.fid, dscr.life_cycle_state, dscr.efarr_fid, dscr.efarr_line_number),
    )


def build_efarr_fcp(dscr: EfarrDescriptor) -> bytes:
    """FCP template for creating an EF.ARR linear record file."""
    fid_tag, lcs_tag, arr_tag = _common_tags(
        dscr.fid, dscr.life_cycle_state, dscr.efarr_fid, dscr.efarr_line_number
    )
    return _template(
        _tlv(0x80, _u16(dscr.file_size)),
        _tlv(0x82, bytes([0x02, 0x21, 0x00]) + _u8(dscr.record_size)),
        fid_tag,
        _tlv(0x88, _u8(dscr.sfi)),
        lcs_tag,
        arr_tag,
    )


def build_kf_fcp(dscr: KfDescriptor) -> bytes:
    """FCP template for creating a key file."""
    proprietary = b"".join(
        (
            _tlv(0x85, _u8(dscr.key_algo)),
            _tlv(0x86, _u16(dscr.key_purpose)),
            _tlv(0x87, _u8(dscr.key_id)),
            _tlv(0x8B, bytes([0x81, 0x01]) + _u8(dscr.kf_flags)),
        )
    )
    return _template(
        _tlv(0x82, bytes([0x51, 0x21])),
        *_common_tags(dscr.fid, dscr.life_cycle_state, dscr.efarr_fid, dscr.efarr_line_number),
        _tlv(0xA5, proprietary),
    )


def build_bf_fcp(dscr: BfDescriptor) -> bytes:
    """FCP template for creating a binary file."""
    return _template(
        _tlv(0x80, _u16(dscr.file_size)),
        _tlv(0x82, bytes([0x01, 0x21])),
        *_common_tags(dscr.fid, dscr.life_cycle_state, dscr.efarr_fid, dscr.efarr_line_number),
    )


def _expect_ok(channel: _Channel, apdu: str, what: str) -> ApduResponse:
    rsp = channel.transmit(apdu)
    if not rsp.is_ok():
        raise FileOperationError(f"error occurred during {what}", rsp)
    return rsp


def set_lcs_use(channel: _Channel) -> None:
    """Move the current file to the 'Use' life cycle state."""
    _expect_ok(channel, apdu_cmd.set_lcs_use(), "life cycle state change")


def select_fid(channel: _Channel, fid: int) -> None:
    """Select a file by identifier without response data."""
    _expect_ok(channel, apdu_cmd.select_fid_no_rsp(fid), "file selection")


def select_fid_fcp(channel: _Channel, fid: int) -> FcpDescriptor:
    """Select a file by identifier and return its parsed FCP."""
    rsp = _expect_ok(channel, apdu_cmd.select_fid_fcp(fid), "file selection")
    return parse_fcp(rsp.data)


def fid_exists(channel: _Channel, fid: int) -> bool:
    """Whether a file with identifier ``fid`` exists in the current directory."""
    rsp = channel.transmit(apdu_cmd.select_fid_no_rsp(fid))
    if rsp.status_equals(_STATUS_OK):
        return True
    if rsp.status_equals(_STATUS_FILE_NOT_FOUND) or rsp.status_equals(_STATUS_RECORD_NOT_FOUND):
        return False
    raise FileOperationError("unexpected status on file selection", rsp)


def create_df(channel: _Channel, dscr: DirDescriptor) -> None:
    """Create a dedicated file."""
    _expect_ok(channel, apdu_cmd.create_file(build_df_fcp(dscr)), "DF creation")


def delete_current_file(channel: _Channel) -> None:
    """Delete the currently selected file."""
    _expect_ok(channel, apdu_cmd.delete_current_file(), "file deletion")


def add_efarr_records(channel: _Channel, fid: int, records: bytes, record_size: int) -> None:
    """Select EF.ARR ``fid`` and append ``records`` in slices of ``record_size``."""
    if record_size <= 0:
        raise ValueError("record size must be positive")
    if len(records) % record_size:
        raise ValueError("records do not split into whole records")
    select_fid(channel, fid)
    for start in range(0, len(records), record_size):
        record = bytes(records[start:start + record_size])
        _expect_ok(channel, apdu_cmd.append_record(record), "APPEND RECORD command")


def create_efarr_file(channel: _Channel, dscr: EfarrDescriptor) -> None:
    """Create an EF.ARR file and fill it with the descriptor's records."""
    _expect_ok(channel, apdu_cmd.create_file(build_efarr_fcp(dscr)), "EF.ARR file creation")
    add_efarr_records(channel, dscr.fid, dscr.records, dscr.record_size)


def change_kf_reference_data(channel: _Channel, fid: int, passwd: bytes) -> None:
    """Select key file ``fid`` and store a new PIN in it."""
    select_fid(channel, fid)
    _expect_ok(
        channel,
        apdu_cmd.change_reference_data_pin(bytes(passwd)),
        "change reference data in KF",
    )


def create_kf_file(channel: _Channel, dscr: KfDescriptor) -> None:
    """Create a key file and set its PIN."""
    _expect_ok(channel, apdu_cmd.create_file(build_kf_fcp(dscr)), "KF file creation")
    change_kf_reference_data(channel, dscr.fid, dscr.passwd)


def write_bf_file(channel: _Channel, fid: int, data: bytes) -> None:
    """Select binary file ``fid`` and write ``data`` in chunks."""
    select_fid(channel, fid)
    data = bytes(data)
    for offset in range(0, len(data), BINARY_FILE_CHUNK):
        chunk = data[offset:offset + BINARY_FILE_CHUNK]
        _expect_ok(channel, apdu_cmd.update_binary(offset, chunk), "binary update in BF")


def create_bf_file(channel: _Channel, dscr: BfDescriptor) -> None:
    """Create a binary file and write the descriptor's data into it."""
    _expect_ok(channel, apdu_cmd.create_file(build_bf_fcp(dscr)), "BF file creation")
    write_bf_file(channel, dscr.fid, dscr.data)


def read_bf_file(channel: _Channel, fid: int) -> bytes:
    """Read the whole content of binary file ``fid``."""
    fcp = select_fid_fcp(channel, fid)
    if len(fcp.size_bytes) < 2:
        raise FileOperationError("selected file reports no size")
    size = fcp.file_size()
    chunks: list[bytes] = []
    for offset in range(0, size, BINARY_FILE_CHUNK):
        chunk_size = min(BINARY_FILE_CHUNK, size - offset)
        rsp = _expect_ok(channel, apdu_cmd.read_binary(offset, chunk_size), "binary read in BF")
        chunks.append(rsp.data)
    return b"".join(chunks)


def verify_pin(channel: _Channel, key_id: int, passwd: bytes) -> None:
    """Verify the PIN of key ``key_id``."""
    _expect_ok(channel, apdu_cmd.verify_pin(key_id, bytes(passwd)), "PIN verification")


def iter_files_cur_dir(channel: _Channel) -> Iterator[FcpDescriptor]:
    """Yield the FCP of each file of the current directory in card order."""
    apdu = apdu_cmd.select_first_file_cur_dir_fcp()
    while True:
        rsp = channel.transmit(apdu)
        if not rsp.is_ok():
            return
        yield parse_fcp(rsp.data)
        apdu = apdu_cmd.select_next_file_cur_dir_fcp()


def print_all_files_cur_dir(channel: _Channel) -> int:
    """Print a description of every file of the current directory; return their count."""
    count = 0
    for count, dscr in enumerate(iter_files_cur_dir(channel), start=1):
        print(f"\nFile #{count - 1}:")
        print(dscr.describe())
        print()
    return count