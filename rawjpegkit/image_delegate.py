"""Per-file-format handlers for probing, loading and saving raw images."""

from __future__ import annotations

import os
import re
from enum import Enum
from typing import Callable, Optional, Union

from .pam import probe_pam, read_pam, write_pam
from .types import (
    ColorSpace,
    ImageFormatError,
    ImageParameters,
    PixelFormat,
    color_space_by_name,
    image_calculate_size,
    pixel_format_by_name,
)
from .y4m import Y4MMetadata, Y4MSubsampling, probe_y4m, read_y4m, write_y4m

PathLike = Union[str, "os.PathLike[str]"]

_DEPTH_8B = 8
_MAXVAL_8B = 255


class ImageFileFormat(Enum):
    """Kind of image file, as recognised from its name."""

    UNKNOWN = "unknown"
    JPEG = "jpeg"
    RAW = "raw"
    PGM = "pgm"
    PPM = "ppm"
    PNM = "pnm"
    PAM = "pam"
    Y4M = "y4m"
    TST = "tst"


LoadDelegate = Callable[[PathLike], bytes]
ProbeDelegate = Callable[[PathLike, ImageFileFormat, bool], ImageParameters]
SaveDelegate = Callable[[PathLike, ImageParameters, object], None]

_PAMPNM_FORMATS = (
    ImageFileFormat.PGM,
    ImageFileFormat.PPM,
    ImageFileFormat.PNM,
    ImageFileFormat.PAM,
)


# --- PAM / PNM -------------------------------------------------------------

def _pam_load(path: PathLike) -> bytes:
    info, data = read_pam(path)
    if info.maxval != _MAXVAL_8B:
        raise ImageFormatError(
            f"PAM/PNM image {path} reports {info.maxval} levels but only 255 are supported"
        )
    return data


_PAMPNM_DEFAULT_PIXEL_FORMATS = {
    ImageFileFormat.PGM: PixelFormat.U8,
    ImageFileFormat.PPM: PixelFormat.P444_U8_P012,
    ImageFileFormat.PNM: PixelFormat.NO_ALPHA,
    ImageFileFormat.PAM: PixelFormat.AUTODETECT,
}

_PAM_DEPTH_TO_PIXEL_FORMAT = {
    4: PixelFormat.P4444_U8_P0123,
    3: PixelFormat.P444_U8_P012,
    1: PixelFormat.U8,
}


def _pampnm_probe(path: PathLike, file_format: ImageFileFormat,
                  file_exists: bool) -> ImageParameters:
    params = ImageParameters()
    if not file_exists:
        try:
            params.pixel_format = _PAMPNM_DEFAULT_PIXEL_FORMATS[file_format]
        except KeyError:
            raise ImageFormatError(
                f"unsupported file format {file_format.value!r} passed to PAM/PNM handler"
            ) from None
        params.color_space = (
            ColorSpace.YCBCR_JPEG if file_format is ImageFileFormat.PGM else ColorSpace.DEFAULT
        )
        return params

    info = probe_pam(path)
    if info.maxval != _MAXVAL_8B:
        raise ImageFormatError(
            f"PAM/PNM image {path} reports {info.maxval} levels but only 255 are "
            "currently supported"
        )
    pixel_format = _PAM_DEPTH_TO_PIXEL_FORMAT.get(info.depth)
    if pixel_format is None:
        raise ImageFormatError(f"unsupported PAM/PNM component count {info.depth}")
    params.width = info.width
    params.height = info.height
    params.pixel_format = pixel_format
    params.color_space = (
        ColorSpace.YCBCR_BT601_256LVLS if info.depth == 1 else ColorSpace.RGB
    )
    return params


_PIXEL_FORMAT_TO_PAM_DEPTH = {
    PixelFormat.U8: 1,
    PixelFormat.P444_U8_P012: 3,
    PixelFormat.P4444_U8_P0123: 4,
}


def _pampnm_save(path: PathLike, params: ImageParameters, data, pnm: bool) -> None:
    if params.pixel_format is not PixelFormat.U8 and params.color_space is not ColorSpace.RGB:
        raise ImageFormatError(f"wrong color space {params.color_space.label} for PAM")
    depth = _PIXEL_FORMAT_TO_PAM_DEPTH.get(params.pixel_format)
    if depth is None:
        raise ImageFormatError(
            f"wrong pixel format {params.pixel_format.label} for PAM/PNM; only packed "
            "formats without subsampling are supported"
        )
    write_pam(path, params.width, params.height, depth, _MAXVAL_8B, data, pnm)


def _pam_save(path: PathLike, params: ImageParameters, data) -> None:
    _pampnm_save(path, params, data, False)


def _pnm_save(path: PathLike, params: ImageParameters, data) -> None:
    _pampnm_save(path, params, data, True)


# --- Y4M -------------------------------------------------------------------

_Y4M_TO_PIXEL_FORMAT = {
    Y4MSubsampling.MONO: PixelFormat.U8,
    Y4MSubsampling.S420: PixelFormat.P420_U8_P0P1P2,
    Y4MSubsampling.S422: PixelFormat.P422_U8_P0P1P2,
    Y4MSubsampling.S444: PixelFormat.P444_U8_P0P1P2,
}

_PIXEL_FORMAT_TO_Y4M = {value: key for key, value in _Y4M_TO_PIXEL_FORMAT.items()}


def _y4m_probe(path: PathLike, file_format: ImageFileFormat,
               file_exists: bool) -> ImageParameters:
    if file_format is not ImageFileFormat.Y4M:
        raise ImageFormatError(f"unsupported file format {file_format.value!r} for Y4M")
    params = ImageParameters()
    if not file_exists:
        params.color_space = ColorSpace.YCBCR_BT601_256LVLS
        params.pixel_format = PixelFormat.STD
        return params

    info = probe_y4m(path)
    params.width = info.width
    params.height = info.height
    if info.bitdepth != _DEPTH_8B:
        raise ImageFormatError(
            f"currently only 8-bit Y4M pictures are supported but {path} has "
            f"{info.bitdepth} bits"
        )
    if info.subsampling == Y4MSubsampling.YUVA:
        raise ImageFormatError("planar YCbCr with alpha is not currently supported")
    pixel_format = _Y4M_TO_PIXEL_FORMAT.get(info.subsampling)
    if pixel_format is None:
        raise ImageFormatError("unknown subsampling in Y4M")
    params.pixel_format = pixel_format
    params.color_space = (
        ColorSpace.YCBCR_BT601 if info.limited else ColorSpace.YCBCR_BT601_256LVLS
    )
    return params


def _y4m_load(path: PathLike) -> bytes:
    _, data = read_y4m(path)
    return data


def _y4m_save(path: PathLike, params: ImageParameters, data) -> None:
    if params.color_space is ColorSpace.RGB:
        raise ImageFormatError("Y4M cannot use RGB colorspace")
    subsampling = _PIXEL_FORMAT_TO_Y4M.get(params.pixel_format)
    if subsampling is None:
        raise ImageFormatError(
            f"wrong pixel format {params.pixel_format.label} for Y4M; only planar "
            "formats are supported"
        )
    info = Y4MMetadata(
        width=params.width,
        height=params.height,
        bitdepth=_DEPTH_8B,
        subsampling=subsampling,
        limited=params.color_space is not ColorSpace.YCBCR_JPEG,
    )
    write_y4m(path, info, data)


# --- synthetic test images -------------------------------------------------

_TST_NAME_RE = re.compile(
    r"\s*([+-]?\d+)x\s*([+-]?\d+)(?:_([^_.]{1,20})(?:_([^_.]{1,20}))?)?"
)

_TST_USAGE = (
    "usage: <W>x<H>[_<CS>[_<PF>]].tst, e.g. 1920x1080.tst, 1920x1080_rgb.tst, "
    "1920x1080_ycbcr-jpeg.tst, 1920x1080_ycbcr-jpeg_422-u8-p1020.tst"
)


def _tst_probe(path: PathLike, file_format: ImageFileFormat,
               file_exists: bool) -> ImageParameters:
    match = _TST_NAME_RE.match(os.fspath(path))
    if match is None:
        raise ImageFormatError(_TST_USAGE)
    width, height, color_space, pixel_format = match.groups()
    return ImageParameters(
        width=int(width),
        height=int(height),
        color_space=color_space_by_name(color_space) if color_space else ColorSpace.RGB,
        pixel_format=(
            pixel_format_by_name(pixel_format) if pixel_format else PixelFormat.P444_U8_P012
        ),
    )


def _tst_load(path: PathLike) -> bytes:
    params = _tst_probe(path, ImageFileFormat.TST, False)
    size = image_calculate_size(params)
    one_line = ImageParameters(
        width=params.width,
        height=1,
        color_space=params.color_space,
        pixel_format=params.pixel_format,
        width_padding=params.width_padding,
    )
    line_size = image_calculate_size(one_line)
    rows = (bytes([row * 255 // params.height]) * line_size for row in range(params.height))
    return b"".join(rows)[:size].ljust(size, b"\0")


# --- lookup ----------------------------------------------------------------

def get_load_delegate(file_format: ImageFileFormat) -> Optional[LoadDelegate]:
    """Loader for the given file format, or None if it cannot be loaded here."""
    if file_format in _PAMPNM_FORMATS:
        return _pam_load
    if file_format is ImageFileFormat.Y4M:
        return _y4m_load
    if file_format is ImageFileFormat.TST:
        return _tst_load
    return None


def get_probe_delegate(file_format: ImageFileFormat) -> Optional[ProbeDelegate]:
    """Header prober for the given file format, or None."""
    if file_format in _PAMPNM_FORMATS:
        return _pampnm_probe
    if file_format is ImageFileFormat.Y4M:
        return _y4m_probe
    if file_format is ImageFileFormat.TST:
        return _tst_probe
    return None


def get_save_delegate(file_format: ImageFileFormat) -> Optional[SaveDelegate]:
    """Writer for the given file format, or None."""
    if file_format is ImageFileFormat.PAM:
        return _pam_save
    if file_format in (ImageFileFormat.PGM, ImageFileFormat.PPM, ImageFileFormat.PNM):
        return _pnm_save
    if file_format is ImageFileFormat.Y4M:
        return _y4m_save
    return None


def load_image(path: PathLike, file_format: ImageFileFormat) -> bytes:
    """Load the raw sample bytes of an image file."""
    delegate = get_load_delegate(file_format)
    if delegate is None:
        raise ImageFormatError(f"no loader for file format {file_format.value!r}")
    return delegate(path)


def probe_image(path: PathLike, file_format: ImageFileFormat,
                file_exists: bool = True) -> ImageParameters:
    """Read image parameters from the file header, or guess them from the format."""
    delegate = get_probe_delegate(file_format)
    if delegate is None:
        raise ImageFormatError(f"no prober for file format {file_format.value!r}")
    return delegate(path, file_format, file_exists)


def save_image(path: PathLike, file_format: ImageFileFormat,
               params: ImageParameters, data) -> None:
    """Write raw sample bytes with the header of the given file format."""
    delegate = get_save_delegate(file_format)
    if delegate is None:
        raise ImageFormatError(f"no writer for file format {file_format.value!r}")
    delegate(path, params, data)