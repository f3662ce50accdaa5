"""Emission of JPEG header segments into an in-memory byte stream."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, List, Mapping, Sequence, Tuple

from .types import (
    ColorSpace,
    ComponentType,
    HuffmanType,
    SamplingFactor,
    clamp,
)

CREATOR = "rawjpegkit"

SPIFF_MARKER_LEN = 32
SPIFF_VERSION = 0x0200
SPIFF_COMPRESSION_JPEG = 5
SPIFF_ENTRY_TAG_EOD = 1
SPIFF_ENTRY_TAG_EOD_LENGTH = 8
APP14_ADOBE_MARKER_LEN = 14

DQT_TABLE_SIZE = 64


class Marker(IntEnum):
    """JPEG marker codes (the byte following 0xFF)."""

    SOF0 = 0xC0
    DHT = 0xC4
    SOI = 0xD8
    EOI = 0xD9
    SOS = 0xDA
    DQT = 0xDB
    DRI = 0xDD
    APP0 = 0xE0
    APP8 = 0xE8
    APP13 = 0xED
    APP14 = 0xEE
    COM = 0xFE
    SEGMENT_INFO = 0xED  # custom segment index header, carried in APP13


class HeaderType(Enum):
    """Which application header identifies the colour space of the stream."""

    DEFAULT = "default"
    JFIF = "jfif"
    SPIFF = "spiff"
    ADOBE = "adobe"


@dataclass(frozen=True)
class HuffmanTable:
    """Huffman table in DHT form: code counts per length 1..16 and symbol values."""

    bits: Tuple[int, ...]
    huffval: Tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "bits", tuple(self.bits))
        object.__setattr__(self, "huffval", tuple(self.huffval))
        if len(self.bits) != 16:
            raise ValueError(f"Huffman table needs 16 code counts, got {len(self.bits)}")
        if len(self.huffval) < self.symbol_count:
            raise ValueError(
                f"Huffman table declares {self.symbol_count} symbols but has {len(self.huffval)}"
            )

    @property
    def symbol_count(self) -> int:
        return sum(self.bits)


@dataclass
class ComponentInfo:
    """Per-component coding information needed by the header writer."""

    type: ComponentType
    sampling_factor: SamplingFactor = SamplingFactor(1, 1)
    segment_count: int = 0


@dataclass
class EncoderState:
    """Everything about an encoded image that goes into its headers."""

    width: int
    height: int
    components: List[ComponentInfo]
    color_space_internal: ColorSpace = ColorSpace.YCBCR_BT601_256LVLS
    quantization_tables: Mapping[ComponentType, Sequence[int]] = field(default_factory=dict)
    huffman_tables: Mapping[Tuple[ComponentType, HuffmanType], HuffmanTable] = field(
        default_factory=dict
    )
    quality: int = 75
    restart_interval: int = 0
    header_type: HeaderType = HeaderType.DEFAULT
    interleaved: bool = False
    segment_info: bool = False
    segment_count: int = 0

    @property
    def comp_count(self) -> int:
        return len(self.components)

    def quantization_table(self, comp_type: ComponentType) -> Sequence[int]:
        try:
            return self.quantization_tables[comp_type]
        except KeyError:
            raise ValueError(f"no quantization table for {comp_type.name}") from None

    def huffman_table(self, comp_type: ComponentType, huff_type: HuffmanType) -> HuffmanTable:
        try:
            return self.huffman_tables[(comp_type, huff_type)]
        except KeyError:
            raise ValueError(
                f"no {huff_type.name} Huffman table for {comp_type.name}"
            ) from None


_RGB_IDS = b"RGBA"


def component_id(index: int, color_space: ColorSpace) -> int:
    """Component identifier written in SOF0 and SOS."""
    if color_space is ColorSpace.RGB:
        if not 0 <= index < len(_RGB_IDS):
            raise ValueError(f"RGB component index {index} out of range")
        return _RGB_IDS[index]
    return index + 1


_SPIFF_COLOR_SPACES: Dict[ColorSpace, int] = {
    ColorSpace.YCBCR_BT709: 1,
    ColorSpace.YCBCR_BT601_256LVLS: 3,
    ColorSpace.YCBCR_BT601: 4,
    ColorSpace.RGB: 10,
}
_SPIFF_GRAYSCALE = 8
_SPIFF_UNSPECIFIED = 2


def _unique_types(state: EncoderState) -> List[ComponentType]:
    seen: List[ComponentType] = []
    for component in state.components:
        if component.type not in seen:
            seen.append(component.type)
    return seen


class JpegWriter:
    """Growing output buffer with helpers that emit JPEG header segments."""

    def __init__(self) -> None:
        self.buffer = bytearray()

    def __len__(self) -> int:
        return len(self.buffer)

    def getvalue(self) -> bytes:
        """Everything written so far."""
        return bytes(self.buffer)

    # --- primitive emitters ---------------------------------------------

    def emit_byte(self, value: int) -> None:
        self.buffer.append(value & 0xFF)

    def emit_2byte(self, value: int) -> None:
        self.buffer += bytes(((value >> 8) & 0xFF, value & 0xFF))

    def emit_4byte(self, value: int) -> None:
        self.buffer += bytes(((value >> shift) & 0xFF) for shift in (24, 16, 8, 0))

    def emit_marker(self, marker: int) -> None:
        self.buffer += bytes((0xFF, int(marker) & 0xFF))

    def _emit_bytes(self, data: bytes) -> None:
        self.buffer += data

    # --- segments --------------------------------------------------------

    def write_soi(self) -> None:
        self.emit_marker(Marker.SOI)

    def write_app0(self) -> None:
        """JFIF 1.01 header, 300x300 dots per inch, no thumbnail."""
        self.emit_marker(Marker.APP0)
        self.emit_2byte(2 + 4 + 1 + 2 + 1 + 2 + 2 + 1 + 1)
        self._emit_bytes(b"JFIF\0")
        self.emit_byte(1)  # major version
        self.emit_byte(1)  # minor version
        self.emit_byte(1)  # units: dots per inch
        self.emit_2byte(300)
        self.emit_2byte(300)
        self.emit_byte(0)  # thumbnail width
        self.emit_byte(0)  # thumbnail height

    def write_app14(self) -> None:
        """Adobe header declaring no colour transform (RGB or CMYK samples)."""
        self.emit_marker(Marker.APP14)
        self.emit_2byte(APP14_ADOBE_MARKER_LEN)
        self._emit_bytes(b"Adobe")
        self.emit_2byte(100)  # version
        self.emit_2byte(0)  # flags0
        self.emit_2byte(0)  # flags1
        self.emit_byte(0)  # colour transform

    def _write_spiff_header(self, state: EncoderState) -> None:
        self.emit_marker(Marker.APP8)
        self.emit_2byte(SPIFF_MARKER_LEN)
        self._emit_bytes(b"SPIFF\0")
        if state.comp_count == 1:
            color_space = _SPIFF_GRAYSCALE
        else:
            color_space = _SPIFF_COLOR_SPACES.get(state.color_space_internal, _SPIFF_UNSPECIFIED)
        profile = 1 if color_space in (3, _SPIFF_GRAYSCALE) else 0
        self.emit_2byte(SPIFF_VERSION)
        self.emit_byte(profile)
        self.emit_byte(state.comp_count)
        self.emit_4byte(state.height)
        self.emit_4byte(state.width)
        self.emit_byte(color_space)
        self.emit_byte(8)  # bits per sample
        self.emit_byte(SPIFF_COMPRESSION_JPEG)
        self.emit_byte(0)  # resolution units: aspect ratio
        self.emit_4byte(1)  # vertical resolution
        self.emit_4byte(1)  # horizontal resolution

    def _write_spiff_directory(self) -> None:
        # the end-of-directory entry must be the last one
        self.emit_marker(Marker.APP8)
        self.emit_2byte(SPIFF_ENTRY_TAG_EOD_LENGTH)
        self.emit_4byte(SPIFF_ENTRY_TAG_EOD)

    def write_spiff(self, state: EncoderState) -> None:
        """SPIFF header, its directory, and the SOI that starts the image proper."""
        self._write_spiff_header(state)
        self._write_spiff_directory()
        self.write_soi()

    def write_dqt(self, comp_type: ComponentType, table: Sequence[int]) -> None:
        """Quantization table, already in zig-zag order."""
        values = list(table)
        if len(values) != DQT_TABLE_SIZE:
            raise ValueError(f"quantization table needs 64 values, got {len(values)}")
        self.emit_marker(Marker.DQT)
        self.emit_2byte(67)
        self.emit_byte(int(comp_type))
        for value in values:
            self.emit_byte(value)

    def write_sof0(self, state: EncoderState) -> None:
        """Baseline frame header."""
        self.emit_marker(Marker.SOF0)
        self.emit_2byte(8 + 3 * state.comp_count)
        self.emit_byte(8)  # precision
        self.emit_2byte(state.height)
        self.emit_2byte(state.width)
        self.emit_byte(state.comp_count)
        for index, component in enumerate(state.components):
            self.emit_byte(component_id(index, state.color_space_internal))
            factor = component.sampling_factor
            self.emit_byte((factor.horizontal << 4) + factor.vertical)
            self.emit_byte(int(ComponentType(component.type)))

    def write_dht(self, comp_type: ComponentType, huff_type: HuffmanType,
                  table: HuffmanTable) -> None:
        """Huffman table segment; class and destination come from the types."""
        index = (int(huff_type) << 4) | int(comp_type)
        length = table.symbol_count
        self.emit_marker(Marker.DHT)
        self.emit_2byte(length + 2 + 1 + 16)
        self.emit_byte(index)
        for count in table.bits:
            self.emit_byte(count)
        for value in table.huffval[:length]:
            self.emit_byte(value)

    def write_dri(self, restart_interval: int) -> None:
        self.emit_marker(Marker.DRI)
        self.emit_2byte(4)
        self.emit_2byte(restart_interval)

    def write_com(self, text) -> None:
        """Comment segment; the text is stored with a terminating NUL."""
        raw = text.encode("utf-8") if isinstance(text, str) else bytes(text)
        raw = raw.split(b"\0", 1)[0]
        self.emit_marker(Marker.COM)
        self.emit_2byte(2 + len(raw) + 1)
        self._emit_bytes(raw + b"\0")

    def _write_com_library(self, state: EncoderState) -> None:
        self.write_com(f"CREATOR: {CREATOR}, quality = {clamp(state.quality, 1, 100)}")

    def _write_application_header(self, state: EncoderState) -> None:
        header_type = state.header_type
        if header_type is HeaderType.JFIF:
            self.write_app0()
        elif header_type is HeaderType.SPIFF:
            self.write_spiff(state)
        elif header_type is HeaderType.ADOBE:
            self.write_app14()
        elif state.comp_count == 4:
            self.write_spiff(state)
        elif state.color_space_internal in (ColorSpace.YCBCR_BT601, ColorSpace.YCBCR_BT709):
            self.write_spiff(state)
        elif state.color_space_internal is ColorSpace.RGB:
            self.write_app14()
        else:
            self.write_app0()

    def write_header(self, state: EncoderState) -> None:
        """Everything from SOI up to, but not including, the first scan header."""
        self.write_soi()
        self._write_application_header(state)
        types = _unique_types(state)
        for comp_type in types:
            self.write_dqt(comp_type, state.quantization_table(comp_type))
        self.write_sof0(state)
        for comp_type in types:
            for huff_type in (HuffmanType.DC, HuffmanType.AC):
                self.write_dht(comp_type, huff_type, state.huffman_table(comp_type, huff_type))
        self.write_dri(state.restart_interval)
        self._write_com_library(state)
        if state.color_space_internal is ColorSpace.YCBCR_BT601:
            self.write_com("CS=ITU601")