"""Core enumerations, image parameters and small numeric helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Iterable, Sequence, Tuple, Union

BLOCK_SIZE = 8
BLOCK_SQUARED_SIZE = 64
MAX_BLOCK_COMPRESSED_SIZE = BLOCK_SIZE * BLOCK_SIZE * 8

# Maximum JPEG header payload; must stay divisible by 4.
MAX_HEADER_SIZE = 65536 - 100

COMPONENTS_3 = 3
COMPONENTS_4 = 4


class ImageFormatError(ValueError):
    """Raised for unknown or unusable colour spaces and pixel formats."""


class ComponentType(IntEnum):
    """JPEG component type."""

    LUMINANCE = 0
    CHROMINANCE = 1


class HuffmanType(IntEnum):
    """JPEG Huffman table class."""

    DC = 0
    AC = 1


class ColorSpace(Enum):
    """Colour space of image samples."""

    NONE = 0
    RGB = 1
    YCBCR_BT601 = 2
    YCBCR_BT601_256LVLS = 3
    YCBCR_BT709 = 4
    DEFAULT = 5
    YCBCR_JPEG = 3  # full-range BT.601, alias of YCBCR_BT601_256LVLS

    @property
    def label(self) -> str:
        """Short name used on command lines and in file names."""
        return _COLOR_SPACE_LABELS[self]

    def __bool__(self) -> bool:
        return self is not ColorSpace.NONE


_COLOR_SPACE_LABELS = {
    ColorSpace.NONE: "none",
    ColorSpace.RGB: "rgb",
    ColorSpace.YCBCR_BT601: "ycbcr-bt601",
    ColorSpace.YCBCR_BT601_256LVLS: "ycbcr-jpeg",
    ColorSpace.YCBCR_BT709: "ycbcr-bt709",
    ColorSpace.DEFAULT: "default",
}

_NAMED_COLOR_SPACES = (
    ColorSpace.RGB,
    ColorSpace.YCBCR_BT601,
    ColorSpace.YCBCR_BT601_256LVLS,
    ColorSpace.YCBCR_BT709,
)


@dataclass(frozen=True)
class SamplingFactor:
    """Horizontal and vertical sampling factor of one component."""

    horizontal: int
    vertical: int


FactorLike = Union[SamplingFactor, Tuple[int, int]]


@dataclass(frozen=True)
class _PixelFormatSpec:
    label: str
    factors: Tuple[SamplingFactor, ...]
    unit_size: int
    interleaved: bool


_S11 = SamplingFactor(1, 1)
_S21 = SamplingFactor(2, 1)
_S22 = SamplingFactor(2, 2)


class PixelFormat(Enum):
    """Memory layout of raw image samples."""

    NONE = "none"
    AUTODETECT = "autodetect"
    NO_ALPHA = "no-alpha"
    STD = "std"
    U8 = "u8"
    P444_U8_P012 = "444-u8-p012"
    P4444_U8_P0123 = "4444-u8-p0123"
    P422_U8_P1020 = "422-u8-p1020"
    P444_U8_P0P1P2 = "444-u8-p0p1p2"
    P422_U8_P0P1P2 = "422-u8-p0p1p2"
    P420_U8_P0P1P2 = "420-u8-p0p1p2"

    @property
    def label(self) -> str:
        """Short name used on command lines and in file names."""
        return self.value

    @property
    def is_concrete(self) -> bool:
        """True for an actual layout, False for placeholder values."""
        return self in _PIXEL_FORMAT_SPECS

    def _spec(self) -> _PixelFormatSpec:
        try:
            return _PIXEL_FORMAT_SPECS[self]
        except KeyError:
            raise ImageFormatError(f"pixel format {self.value!r} has no concrete layout") from None

    @property
    def sampling_factors(self) -> Tuple[SamplingFactor, ...]:
        """JPEG sampling factor of each component."""
        return self._spec().factors

    @property
    def component_count(self) -> int:
        return len(self._spec().factors)

    @property
    def unit_size(self) -> int:
        """Bytes per pixel (per sample for planar layouts)."""
        return self._spec().unit_size

    @property
    def is_interleaved(self) -> bool:
        """True for packed layouts holding more than one component."""
        return self._spec().interleaved

    @property
    def is_planar(self) -> bool:
        spec = self._spec()
        return not spec.interleaved and len(spec.factors) > 1


_PIXEL_FORMAT_SPECS = {
    PixelFormat.U8: _PixelFormatSpec("u8", (_S11,), 1, False),
    PixelFormat.P444_U8_P012: _PixelFormatSpec("444-u8-p012", (_S11, _S11, _S11), 3, True),
    PixelFormat.P4444_U8_P0123: _PixelFormatSpec("4444-u8-p0123", (_S11, _S11, _S11, _S11), 4, True),
    PixelFormat.P422_U8_P1020: _PixelFormatSpec("422-u8-p1020", (_S21, _S11, _S11), 2, True),
    PixelFormat.P444_U8_P0P1P2: _PixelFormatSpec("444-u8-p0p1p2", (_S11, _S11, _S11), 1, False),
    PixelFormat.P422_U8_P0P1P2: _PixelFormatSpec("422-u8-p0p1p2", (_S21, _S11, _S11), 1, False),
    PixelFormat.P420_U8_P0P1P2: _PixelFormatSpec("420-u8-p0p1p2", (_S22, _S11, _S11), 1, False),
}


@dataclass
class ImageParameters:
    """Dimensions and layout of a raw image."""

    width: int = 0
    height: int = 0
    color_space: ColorSpace = ColorSpace.NONE
    pixel_format: PixelFormat = PixelFormat.NONE
    width_padding: int = 0


def clamp(value, low, high):
    """Limit value to the closed range [low, high]."""
    if value > high:
        return high
    if value < low:
        return low
    return value


def div_round_up(value: int, div: int) -> int:
    """Integer division rounding up when there is a remainder (C semantics)."""
    quotient = abs(value) // abs(div)
    if (value < 0) != (div < 0):
        quotient = -quotient
    remainder = value - quotient * div
    return quotient + 1 if remainder != 0 else quotient


def _as_factor(item: FactorLike) -> SamplingFactor:
    if isinstance(item, SamplingFactor):
        return item
    horizontal, vertical = item
    return SamplingFactor(horizontal, vertical)


def make_sampling_factor(comp_count: int, factors: Iterable[FactorLike]) -> int:
    """Pack up to four sampling factors into 32 bits, zeroing unused components."""
    if not 0 <= comp_count <= 4:
        raise ValueError(f"component count must be 0 to 4, got {comp_count}")
    packed_factors = [_as_factor(item) for item in factors]
    if len(packed_factors) > 4:
        raise ValueError("at most four sampling factors can be packed")
    packed_factors += [SamplingFactor(0, 0)] * (4 - len(packed_factors))
    packed = 0
    for factor in packed_factors:
        packed = (packed << 8) | ((factor.horizontal & 0xF) << 4) | (factor.vertical & 0xF)
    mask = (0xFFFFFFFF << (32 - comp_count * 8)) & 0xFFFFFFFF
    return packed & mask


def color_space_by_name(name: str) -> ColorSpace:
    """Look up a colour space by its short name."""
    for color_space in _NAMED_COLOR_SPACES:
        if color_space.label == name:
            return color_space
    raise ImageFormatError(f"unknown color space {name!r}")


def pixel_format_by_name(name: str) -> PixelFormat:
    """Look up a concrete pixel format by its short name."""
    for pixel_format in _PIXEL_FORMAT_SPECS:
        if pixel_format.label == name:
            return pixel_format
    raise ImageFormatError(f"unknown pixel format {name!r}")


def _max_factor(factors: Sequence[SamplingFactor]) -> SamplingFactor:
    return SamplingFactor(
        max(f.horizontal for f in factors),
        max(f.vertical for f in factors),
    )


def image_calculate_size(params: ImageParameters) -> int:
    """Number of bytes a raw image with these parameters occupies."""
    pixel_format = params.pixel_format
    spec = pixel_format._spec()
    if params.width < 0 or params.height < 0:
        raise ImageFormatError(f"negative image size {params.width}x{params.height}")
    if spec.interleaved or len(spec.factors) == 1:
        line = params.width * spec.unit_size + params.width_padding
        return line * params.height
    top = _max_factor(spec.factors)
    return sum(
        div_round_up(params.width * f.horizontal, top.horizontal)
        * div_round_up(params.height * f.vertical, top.vertical)
        * spec.unit_size
        for f in spec.factors
    )