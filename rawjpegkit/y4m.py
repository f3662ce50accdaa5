"""Reading and writing of single-frame YUV4MPEG2 (Y4M) images."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Optional, Tuple, Union

PathLike = Union[str, "os.PathLike[str]"]

_MAX_TOKEN = 128
_TOKEN_RE = re.compile(rb"[ \t\n\v\f\r]*([^ \t\n\v\f\r]{1,%d})" % _MAX_TOKEN)
_INT_RE = re.compile(r"[+-]?\d+")
_ATOI_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")
_CHROMA_RE = re.compile(r"([+-]?\d+)(?:p([+-]?\d+))?")


class Y4MError(ValueError):
    """Raised when a Y4M file cannot be parsed or written."""


class Y4MSubsampling(IntEnum):
    """Chroma subsampling as written in the Y4M C tag."""

    MONO = 400
    S420 = 420
    S422 = 422
    S444 = 444
    YUVA = 4444


@dataclass
class Y4MMetadata:
    """Header information of a Y4M image."""

    width: int = 0
    height: int = 0
    bitdepth: int = 8
    subsampling: int = Y4MSubsampling.S420
    limited: bool = False


def _atoi(text: str) -> int:
    match = _ATOI_RE.match(text)
    return int(match.group(1)) if match else 0


def _subsampling_value(value: int) -> int:
    try:
        return Y4MSubsampling(value)
    except ValueError:
        return value


def _parse_chroma(text: str, info: Y4MMetadata) -> None:
    info.bitdepth = 8
    if text == "444alpha":
        info.subsampling = Y4MSubsampling.YUVA
        return
    if text.startswith("mono"):
        info.subsampling = Y4MSubsampling.MONO
        match = _INT_RE.match(text, 4)
        if match:
            info.bitdepth = int(match.group())
        return
    if not text:
        info.subsampling = 0
        return
    match = _CHROMA_RE.match(text)
    if match is None:
        raise Y4MError("unable to parse chroma type")
    info.subsampling = _subsampling_value(int(match.group(1)))
    if match.group(2) is not None:
        info.bitdepth = int(match.group(2))


def data_length(info: Y4MMetadata) -> int:
    """Number of raw bytes in one frame described by info."""
    width, height = info.width, info.height
    if info.subsampling == Y4MSubsampling.MONO:
        length = width * height
    elif info.subsampling == Y4MSubsampling.S420:
        length = width * height + 2 * ((width + 1) // 2) * ((height + 1) // 2)
    elif info.subsampling == Y4MSubsampling.S422:
        length = width * height + 2 * ((width + 1) // 2) * height
    elif info.subsampling == Y4MSubsampling.S444:
        length = width * height * 3
    elif info.subsampling == Y4MSubsampling.YUVA:
        length = width * height * 4
    else:
        raise Y4MError(f"unsupported subsampling '{int(info.subsampling)}'")
    return length * (2 if info.bitdepth > 8 else 1)


class _Tokens:
    def __init__(self, raw: bytes) -> None:
        self.raw = raw
        self.pos = 0

    def next(self) -> Optional[str]:
        match = _TOKEN_RE.match(self.raw, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return match.group(1).decode("latin-1")

    def getc(self) -> Optional[int]:
        if self.pos >= len(self.raw):
            return None
        value = self.raw[self.pos]
        self.pos += 1
        return value


def _parse(path: PathLike) -> Tuple[Y4MMetadata, _Tokens]:
    tokens = _Tokens(Path(path).read_bytes())
    if tokens.next() != "YUV4MPEG2":
        raise Y4MError(f"file '{path}' doesn't seem to be valid Y4M")
    info = Y4MMetadata(width=0, height=0, bitdepth=0, subsampling=0, limited=False)
    while True:
        item = tokens.next()
        if item is None or item == "FRAME":
            break
        tag = item[0]
        if tag == "W":
            info.width = _atoi(item[1:])
        elif tag == "H":
            info.height = _atoi(item[1:])
        elif tag == "C":
            _parse_chroma(item[1:], info)
        elif tag == "X" and item == "XCOLORRANGE=LIMITED":
            info.limited = True
        # F, I and A parameters are ignored
    if tokens.getc() != ord("\n"):
        raise Y4MError(f"file '{path}' has no FRAME header terminated by a newline")
    return info, tokens


def probe_y4m(path: PathLike) -> Y4MMetadata:
    """Parse the stream and frame header of a Y4M file."""
    info, _ = _parse(path)
    data_length(info)
    return info


def read_y4m(path: PathLike) -> Tuple[Y4MMetadata, bytes]:
    """Read the first frame of a Y4M file, returning its header and raw bytes."""
    info, tokens = _parse(path)
    length = data_length(info)
    data = tokens.raw[tokens.pos:tokens.pos + length]
    if len(data) != length:
        raise Y4MError(
            f"unable to load {length} data bytes from Y4M file, read {len(data)} bytes"
        )
    return info, data


def write_y4m(path: PathLike, info: Y4MMetadata, data) -> None:
    """Write one frame of raw samples as a Y4M file."""
    if info.subsampling == Y4MSubsampling.MONO:
        chroma_type = "mono"
    elif info.subsampling == Y4MSubsampling.YUVA:
        if info.bitdepth != 8:
            raise Y4MError("only 8-bit 444alpha is supported for Y4M")
        chroma_type = "444alpha"
    else:
        chroma_type = str(int(info.subsampling))
    length = data_length(info)
    if info.bitdepth > 8:
        prefix = "p" if info.subsampling != Y4MSubsampling.MONO else ""
        chroma_type += f"{prefix}{info.bitdepth}"
    view = memoryview(data).cast("B")
    if view.nbytes < length:
        raise Y4MError(f"unable to write Y4M data - length {length}, available {view.nbytes}")
    header = (
        f"YUV4MPEG2 W{info.width} H{info.height} F25:1 Ip A0:0 C{chroma_type} "
        f"XCOLORRANGE={'LIMITED' if info.limited else 'FULL'}\nFRAME\n"
    )
    with open(path, "wb") as file:
        file.write(header.encode("ascii"))
        file.write(view[:length])