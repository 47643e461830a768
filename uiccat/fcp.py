"""Parsing and description of File Control Parameter templates."""

from __future__ import annotations

from dataclasses import dataclass, field

_FILE_TYPES = {
    0x38: "DF / MF", 0x78: "DF / MF",
    0x01: "BF", 0x41: "BF",
    0x02: "FRF", 0x42: "FRF",
    0x06: "CRF", 0x46: "CRF",
    0x11: "KF", 0x51: "KF",
    0x39: "TF", 0x79: "TF",
}

_LIFE_CYCLE_STATES = {
    0x03: "Init",
    0x05: "Use",
    0x04: "Block",
    0x0C: "Terminate",
}

_KF_TYPES = (0x11, 0x51)


def file_type_name(file_type: int) -> str:
    """Name of a file type byte."""
    return _FILE_TYPES.get(file_type, "unknown file type")


def life_cycle_state_name(state: int) -> str:
    """Name of a life cycle state byte."""
    return _LIFE_CYCLE_STATES.get(state, "unknown LCS")


@dataclass
class KfProprietary:
    """Proprietary (0xA5) information of a key file."""

    key_algorithm: bytes = b""
    key_purpose: bytes = b""
    key_id: bytes = b""
    max_tries: bytes = b""
    flags: bytes = b""
    algorithm_params: bytes = b""


_KF_FIELDS = {
    0x85: "key_algorithm",
    0x86: "key_purpose",
    0x87: "key_id",
    0x89: "max_tries",
    0x8B: "flags",
    0x8E: "algorithm_params",
}

_TOP_FIELDS = {
    0x80: "size_bytes",
    0x82: "file_descriptor",
    0x83: "file_id",
    0x84: "df_name",
    0x88: "sfi",
    0x8A: "lcs",
    0x8B: "arr_reference",
}


@dataclass
class FcpDescriptor:
    """Tags of an FCP template; an empty value means the tag is absent."""

    size_bytes: bytes = b""
    file_descriptor: bytes = b""
    file_id: bytes = b""
    df_name: bytes = b""
    sfi: bytes = b""
    lcs: bytes = b""
    arr_reference: bytes = b""
    kf: KfProprietary = field(default_factory=KfProprietary)
    proprietary_81: bytes = b""

    def _type_in(self, types: tuple[int, ...]) -> bool:
        return bool(self.file_descriptor) and self.file_descriptor[0] in types

    def is_df_or_mf(self) -> bool:
        return self._type_in((0x38, 0x78))

    def is_bf(self) -> bool:
        return self._type_in((0x01, 0x41))

    def is_kf(self) -> bool:
        return self._type_in(_KF_TYPES)

    def fid(self) -> int:
        """File identifier, or 0 when absent."""
        if len(self.file_id) < 2:
            return 0
        return self.file_id[0] * 256 + self.file_id[1]

    def file_size(self) -> int:
        """File size from tag 0x80, or 0 when absent."""
        if len(self.size_bytes) < 2:
            return 0
        return self.size_bytes[0] * 256 + self.size_bytes[1]

    def describe(self) -> str:
        """Multi-line human-readable description of the template."""
        lines: list[str] = []
        if self.size_bytes:
            size = self.file_size()
            lines += ["tag 0x80 (file size):", f" - {size} (0x{size:x}) bytes"]

        if self.file_descriptor:
            ftype = self.file_descriptor[0]
            lines += ["tag 0x82 (file type):", f" - file type 0x{ftype:X} ({file_type_name(ftype)})"]
            if len(self.file_descriptor) > 3:
                lines.append(f" - record size {self.file_descriptor[3]}")
            if len(self.file_descriptor) > 4:
                lines.append(f" - record number {self.file_descriptor[4]}")

        if self.file_id:
            lines += ["tag_0x83 (FID):", f" - 0x{self.file_id.hex().upper()}"]

        if self.df_name:
            lines += [
                f"tag_0x84 (AID), tag_size = {len(self.df_name)}",
                f" - 0x{self.df_name.hex().upper()}",
            ]

        if self.sfi:
            lines += ["tag_0x88 (SFI):", f" - 0x{self.sfi[0]:02X}"]

        if self.lcs:
            state = self.lcs[0]
            lines += ["tag_0x8A (LCS): ", f" - 0x{state:02X} ({life_cycle_state_name(state)})"]

        if len(self.arr_reference) >= 3:
            ref = self.arr_reference
            lines += [
                "tag_0x8B(EF_arr reference): ",
                f" - 0x{ref[0]:02X}{ref[1]:02X}, record number {ref[2]} (0x{ref[2]:02X})",
            ]

        if self.is_kf():
            kf = self.kf
            if kf.key_algorithm:
                lines.append(f"tag 0xA5 - 0x85: key algorithm - {kf.key_algorithm[0]}")
            if len(kf.key_purpose) >= 2:
                lines.append(
                    f"tag 0xA5 - 0x86: key purpose - 0x{kf.key_purpose[0]:X}{kf.key_purpose[1]:X}"
                )
            if kf.key_id:
                lines.append(f"tag 0xA5 - 0x87: key ID - 0x{kf.key_id[0]:X}")
            if kf.max_tries:
                lines.append(f"tag 0xA5 - 0x89: max try number - {kf.max_tries[0]}")
            if len(kf.flags) >= 3:
                lines.append(f"tag 0xA5 - 0x8B: KF flags - {kf.flags[2]}")
            if kf.algorithm_params:
                lines.append(
                    "tag 0xA5 - 0x8E: algorithm parameters for GOST P34.10-12 - "
                    f"{kf.algorithm_params[0]}"
                )
        elif self.proprietary_81:
            lines.append("tag 0xA5 - 0x81: TBD")

        return "\n".join(lines)


def _iter_tlv(data: bytes):
    offset = 0
    while offset + 1 < len(data):
        tag, size = data[offset], data[offset + 1]
        offset += 2
        yield tag, size, data[offset:offset + size], offset
        if tag != 0x62:
            offset += size


def _parse_kf_proprietary(value: bytes) -> KfProprietary:
    kf = KfProprietary()
    offset = 0
    while offset + 1 < len(value):
        tag, size = value[offset], value[offset + 1]
        offset += 2
        name = _KF_FIELDS.get(tag)
        if name is not None:
            setattr(kf, name, value[offset:offset + size])
        offset += size
    return kf


def _parse_other_proprietary(value: bytes) -> bytes:
    found = b""
    offset = 0
    while offset + 1 < len(value):
        tag, size = value[offset], value[offset + 1]
        offset += 2
        if tag == 0x81:
            found = value[offset:offset + size]
        offset += size
    return found


def parse_fcp(fcp: bytes) -> FcpDescriptor:
    """Parse an FCP template (with or without the outer 0x62 tag)."""
    dscr = FcpDescriptor()
    is_kf = False
    for tag, _size, value, offset in _iter_tlv(bytes(fcp)):
        name = _TOP_FIELDS.get(tag)
        if name is not None:
            setattr(dscr, name, value)
            if tag == 0x82 and offset < len(fcp):
                is_kf = fcp[offset] in _KF_TYPES
        elif tag == 0xA5:
            if is_kf:
                dscr.kf = _parse_kf_proprietary(value)
            else:
                dscr.proprietary_81 = _parse_other_proprietary(value)
    return dscr