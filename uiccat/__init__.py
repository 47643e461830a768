"""Talk to a UICC secure element through AT commands: APDUs, replies, FCP templates and files."""

__version__ = "0.1.0"

__all__ = ["apdu", "response", "fcp", "at_channel", "files"]