"""Parsing of modem replies carrying APDU responses."""

from __future__ import annotations

import re
from dataclasses import dataclass

_CGLA_TAG = "CGLA"
_ESIMEXIST_TAG = "ESIMEXIST"
_CGLA_BODY = re.compile(r': (\d+),"')

APDU_RSP_BUFFER_SIZE = 600


class ResponseFormatError(ValueError):
    """A modem reply does not have the expected layout."""


@dataclass(frozen=True)
class ApduResponse:
    """Status words and data returned by the card."""

    sw1: int = 0
    sw2: int = 0
    data: bytes = b""

    @property
    def status(self) -> int:
        return (self.sw1 << 8) | self.sw2

    def status_equals(self, status: int) -> bool:
        """Whether SW1/SW2 equal the 16-bit ``status``."""
        return self.sw1 == (status >> 8) and self.sw2 == (status & 0xFF)

    def is_ok(self) -> bool:
        """Whether the card answered 9000."""
        return self.status_equals(0x9000)

    def format(self) -> str:
        """Human-readable dump of the response."""
        return (
            f"sw1 = {self.sw1:02X} (0x{self.sw1:X})\n"
            f"sw2 = {self.sw2:02X} (0x{self.sw2:X})\n"
            f"rsp_size = {len(self.data)}, rsp = {self.data.hex().upper()}"
        )


def parse_esimexist_response(msg: str) -> int:
    """Return the 0/1 flag of an ``+ESIMEXIST: n`` reply."""
    start = msg.find(_ESIMEXIST_TAG)
    if start < 0:
        raise ResponseFormatError("no ESIMEXIST tag in response")
    pos = start + len(_ESIMEXIST_TAG)
    if msg[pos:pos + 2] != ": ":
        raise ResponseFormatError("ESIMEXIST tag is not followed by ': '")
    flag = msg[pos + 2:pos + 3]
    if flag not in ("0", "1"):
        raise ResponseFormatError(f"unexpected ESIMEXIST value {flag!r}")
    return int(flag)


def parse_cgla_response(msg: str) -> ApduResponse:
    """Parse an ``+CGLA: <len>,"<hex>"`` reply into an :class:`ApduResponse`."""
    start = msg.find(_CGLA_TAG)
    if start < 0:
        raise ResponseFormatError("no CGLA tag in response")
    match = _CGLA_BODY.match(msg, start + len(_CGLA_TAG))
    if match is None:
        raise ResponseFormatError("malformed CGLA response")
    length = int(match.group(1))
    if length < 4:
        raise ResponseFormatError("CGLA response is shorter than its status words")
    body = msg[match.end():match.end() + length]
    if len(body) < length:
        raise ResponseFormatError("CGLA response is truncated")
    try:
        data = bytes.fromhex(body[:-4])
        sw1 = int(body[-4:-2], 16)
        sw2 = int(body[-2:], 16)
    except ValueError as exc:
        raise ResponseFormatError("CGLA response holds invalid hex") from exc
    if len(data) > APDU_RSP_BUFFER_SIZE:
        raise ResponseFormatError("CGLA response data is too long")
    return ApduResponse(sw1, sw2, data)


def file_size_from_fcp(fcp: bytes) -> int:
    """Return the file size held in tag 0x80 of an FCP template."""
    offset = 0
    while offset + 1 < len(fcp):
        tag = fcp[offset]
        tag_size = fcp[offset + 1]
        offset += 2
        if tag == 0x80:
            if offset + 1 >= len(fcp):
                raise ResponseFormatError("file size tag is truncated")
            return fcp[offset] * 256 + fcp[offset + 1]
        if tag != 0x62:
            offset += tag_size
    raise ResponseFormatError("no file size tag in FCP")