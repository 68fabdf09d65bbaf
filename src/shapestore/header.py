from __future__ import annotations

from struct import error, pack, unpack

from .constants import FILE_CODE, FILE_VERSION, HEADER_SIZE, NULL, SHAPETYPE_LOOKUP
from .envelope import Envelope
from .exceptions import ShapefileException
from .types import ReadSeekableBinStream


class ShapefileHeader:
    """The 100 byte header shared by .shp and .shx files.

    file_length is held in bytes; on disk it is stored as a count of
    16-bit words. The Z and M ranges are not supported and written as zeros.
    """

    def __init__(
        self,
        file_type: int = NULL,
        file_length: int = HEADER_SIZE,
        envelope: Envelope | None = None,
        file_code: int = FILE_CODE,
        version: int = FILE_VERSION,
    ):
        self.file_type = file_type
        self.file_length = file_length
        self.envelope = envelope
        self.file_code = file_code
        self.version = version

    @classmethod
    def from_bytes(cls, buf: bytes) -> ShapefileHeader:
        if len(buf) < HEADER_SIZE:
            raise ShapefileException(
                f"Shapefile header requires {HEADER_SIZE} bytes, got {len(buf)}."
            )
        file_code = unpack(">i", buf[0:4])[0]
        # File length (16-bit word * 2 = bytes)
        file_length = unpack(">i", buf[24:28])[0] * 2
        version, file_type = unpack("<2i", buf[28:36])
        envelope: Envelope | None = None
        # An empty file has no meaningful bounding box
        if file_length > HEADER_SIZE:
            envelope = Envelope(*unpack("<4d", buf[36:68]))
        return cls(file_type, file_length, envelope, file_code, version)

    def to_bytes(self) -> bytes:
        envelope = self.envelope if self.envelope is not None else (0, 0, 0, 0)
        try:
            return b"".join(
                [
                    # File code, Unused bytes
                    pack(">6i", self.file_code, 0, 0, 0, 0, 0),
                    # File length (Bytes / 2 = 16-bit words)
                    pack(">i", self.file_length // 2),
                    pack("<2i", self.version, self.file_type),
                    pack("<4d", *envelope),
                    # Elevation and measure ranges
                    pack("<4d", 0, 0, 0, 0),
                ]
            )
        except error:
            raise ShapefileException(
                "Failed to write shapefile bounding box. Floats required."
            )

    @classmethod
    def read(cls, f: ReadSeekableBinStream) -> ShapefileHeader:
        f.seek(0)
        return cls.from_bytes(f.read(HEADER_SIZE))

    def write(self, f) -> None:
        f.seek(0)
        f.write(self.to_bytes())

    def copy(self) -> ShapefileHeader:
        return ShapefileHeader(
            self.file_type,
            self.file_length,
            self.envelope,
            self.file_code,
            self.version,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ShapefileHeader):
            return NotImplemented
        return (
            self.file_type == other.file_type
            and self.file_length == other.file_length
            and self.envelope == other.envelope
            and self.file_code == other.file_code
            and self.version == other.version
        )

    def __repr__(self) -> str:
        return (
            f"ShapefileHeader(type={SHAPETYPE_LOOKUP.get(self.file_type, self.file_type)}, "
            f"length={self.file_length}, envelope={self.envelope})"
        )
