"""AT-command channel to the secure element behind a modem.

Commands travel as ``AT+CCHO``/``AT+CCHC``/``AT+CGLA`` requests over a byte
stream (usually a serial port), and replies are read until the expected
number of lines has arrived.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from . import apdu as apdu_cmd
from .response import ApduResponse, parse_cgla_response, parse_esimexist_response

logger = logging.getLogger(__name__)

BUFFER_SIZE = 4096
ERROR_STR = "ERROR"

NUM_LINES_SIM_EXIST = 4
NUM_LINES_OPEN_SESSION = 4
NUM_LINES_CLOSE_SESSION = 2
NUM_LINES_SELECT_AID = 6
NUM_LINES_GET_CHALLENGE = 6
NUM_LINES_CGLA = 6


class AtError(Exception):
    """An AT command could not be carried out."""


class MessageTooLongError(AtError):
    """A command does not fit into the transmit buffer."""


class ConnectionIssueError(AtError):
    """The stream to the modem failed or was closed."""


class NoLogicalChannelError(AtError):
    """No logical channel to the crypto application is open."""


class _Stream(Protocol):
    def write(self, data: bytes) -> Optional[int]: ...

    def read(self, size: int) -> Optional[bytes]: ...


def at_cmd_sim_exist() -> str:
    """Command asking whether a secure element is present."""
    return "AT+ESIMEXIST?"


def at_cmd_open_logical_channel(aid: str) -> str:
    """Command opening a logical channel to the application ``aid``."""
    return f'AT+CCHO="{aid}"'


def at_cmd_close_logical_channel() -> str:
    """Command closing logical channel 1."""
    return "AT+CCHC=1"


def at_cmd_send_apdu(session_id: int, apdu: str) -> str:
    """Command sending a hex APDU over logical channel ``session_id``."""
    return f'AT+CGLA={session_id},{len(apdu)},"{apdu}"'


def count_lines(msg: str) -> int:
    """Number of CR LF line terminators in ``msg``."""
    return msg.count("\r\n")


class AtChannel:
    """Session with the modem's crypto application over a byte stream."""

    def __init__(self, stream: _Stream, read_output: bool = True, verbose: bool = False) -> None:
        self.stream = stream
        self.read_output = read_output
        self.verbose = verbose
        self.session_id: Optional[int] = None

    def is_crypto_channel_open(self) -> bool:
        """Whether a logical channel to the crypto application is open."""
        return self.session_id is not None

    def _require_session(self) -> int:
        if self.session_id is None:
            raise NoLogicalChannelError("logical channel with crypto app is not opened")
        return self.session_id

    def send_message(self, msg: str) -> None:
        """Write ``msg`` terminated by CR to the stream."""
        if len(msg) >= BUFFER_SIZE:
            raise MessageTooLongError("message size is too long")
        logger.debug("send message: %r", msg)
        try:
            written = self.stream.write((msg + "\r").encode("ascii"))
        except OSError as exc:
            raise ConnectionIssueError(f"failed to send data over serial port: {exc}") from exc
        if written is not None and written <= 0:
            raise ConnectionIssueError("failed to send data over serial port")

    def read_message(self, num_lines: int) -> str:
        """Read a reply of ``num_lines`` lines (or up to an ERROR) and tidy it.

        Carriage returns are dropped and leading and trailing newlines
        stripped. When output reading is off, nothing is read and an empty
        string is returned.
        """
        if not self.read_output:
            return ""
        buffer = ""
        while True:
            try:
                chunk = self.stream.read(BUFFER_SIZE)
            except OSError as exc:
                raise ConnectionIssueError(f"read failed: {exc}") from exc
            if chunk is None:
                raise ConnectionIssueError("read failed")
            if not chunk:
                logger.error("0 bytes read, it seems that connection is lost")
                raise ConnectionIssueError("connection lost")
            buffer += chunk.decode("ascii", errors="replace")
            if count_lines(buffer) >= num_lines or ERROR_STR in buffer:
                break

        pending = getattr(self.stream, "in_waiting", 0)
        if isinstance(pending, int) and pending > 0:
            extra = self.stream.read(pending)
            logger.debug("discarded trailing data: %r", extra)

        reply = buffer.replace("\r", "").lstrip("\n").rstrip("\n")
        logger.debug("read_message(), reply = %r", reply)
        return reply

    def open_crypto_channel(self) -> None:
        """Open a logical channel to the crypto application, if not open yet."""
        if self.session_id is not None:
            logger.debug("logical channel with crypto app is already opened")
            return
        self.send_message(at_cmd_open_logical_channel(apdu_cmd.CRYPTO_AID))
        reply = self.read_message(NUM_LINES_OPEN_SESSION)
        logger.debug("received response on open session cmd = %r", reply)
        if ERROR_STR in reply:
            raise AtError("failed to open logical channel with crypto app")
        digits = ""
        for ch in reply:
            if not ch.isdigit():
                break
            digits += ch
        self.session_id = int(digits) if digits else 0
        logger.debug("crypto_app_session_id = %d", self.session_id)

    def close_crypto_channel(self, force: bool = False) -> None:
        """Close the logical channel; ``force`` closes it even if none is known."""
        if self.session_id is None and not force:
            raise NoLogicalChannelError("logical channel with crypto app is not opened")
        self.send_message(at_cmd_close_logical_channel())
        reply = self.read_message(NUM_LINES_CLOSE_SESSION)
        logger.debug("received response on close session cmd = %r", reply)
        if reply.startswith("OK"):
            self.session_id = None
        else:
            logger.error("unknown response = %r", reply)

    def check_se_existence(self) -> bool:
        """Ask the modem whether a secure element is present."""
        self.send_message(at_cmd_sim_exist())
        reply = self.read_message(NUM_LINES_SIM_EXIST)
        logger.debug("received response on sim exist cmd = %r", reply)
        return bool(parse_esimexist_response(reply))

    def send_apdu(self, apdu: str) -> None:
        """Send a hex APDU over the open logical channel."""
        session_id = self._require_session()
        self.send_message(at_cmd_send_apdu(session_id, apdu))

    def transmit(self, apdu: str) -> ApduResponse:
        """Send a hex APDU and return the card's parsed response."""
        self.send_apdu(apdu)
        reply = self.read_message(NUM_LINES_CGLA)
        if self.verbose:
            logger.info("received response on cgla cmd = %r, size = %d", reply, len(reply))
        return parse_cgla_response(reply)

    def select_crypto_aid(self) -> str:
        """Select the crypto application by AID; return the raw reply."""
        self._require_session()
        self.send_apdu(apdu_cmd.select_crypto_app())
        reply = self.read_message(NUM_LINES_SELECT_AID)
        logger.debug("received response on select aid cmd = %r", reply)
        return reply

    def get_random_number(self) -> int:
        """Return a signed 32-bit random number from GET CHALLENGE."""
        self._require_session()
        self.send_apdu(apdu_cmd.get_challenge_4_bytes())
        reply = self.read_message(NUM_LINES_GET_CHALLENGE)
        rsp = parse_cgla_response(reply)
        if len(rsp.data) < 4:
            raise AtError(
                f"challenge response holds {len(rsp.data)} bytes "
                f"(status {rsp.sw1:02X}{rsp.sw2:02X})"
            )
        value = int.from_bytes(rsp.data[:4], "big", signed=True)
        logger.debug("sw1 = %d, sw2 = %d, rand_num = %d", rsp.sw1, rsp.sw2, value)
        return value