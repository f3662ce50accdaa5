"""Reading and writing of binary PAM (P7) and PNM (P4, P5, P6) images."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

PathLike = Union[str, "os.PathLike[str]"]

logger = logging.getLogger(__name__)

_PAM_LINE_LIMIT = 126
_MAX_MAXVAL = 65535
_WHITESPACE = b" \t\n\v\f\r"
_WHITESPACE_RE = re.compile(rb"[ \t\n\v\f\r]*")
_INT_RE = re.compile(rb"[+-]?\d+")
_ATOI_RE = re.compile(r"[ \t\n\v\f\r]*([+-]?\d+)")


class PamError(ValueError):
    """Raised when a PAM or PNM file cannot be parsed or written."""


@dataclass
class PamMetadata:
    """Header information of a PAM or PNM image."""

    width: int = 0
    height: int = 0
    depth: int = 0
    maxval: int = 0
    # 1 bit per pixel with byte-aligned lines (P4); meaningful only for depth 1, maxval 1
    bitmap_pbm: bool = False

    @property
    def data_length(self) -> int:
        """Number of raw sample bytes following the header."""
        if self.maxval == 1 and self.bitmap_pbm:
            return (self.width + 7) // 8 * self.height
        length = self.depth * self.width * self.height
        return length * 2 if self.maxval > 255 else length


def _atoi(text: str) -> int:
    match = _ATOI_RE.match(text)
    return int(match.group(1)) if match else 0


class _Cursor:
    """Sequential reader over the bytes of a file."""

    def __init__(self, raw: bytes) -> None:
        self.raw = raw
        self.pos = 0

    @property
    def at_end(self) -> bool:
        return self.pos >= len(self.raw)

    def getc(self) -> Optional[int]:
        if self.at_end:
            return None
        value = self.raw[self.pos]
        self.pos += 1
        return value

    def readline(self, limit: int) -> bytes:
        newline = self.raw.find(b"\n", self.pos, self.pos + limit)
        stop = self.pos + limit if newline == -1 else newline + 1
        line = self.raw[self.pos:stop]
        self.pos += len(line)
        return line

    def skip_line(self) -> None:
        while True:
            value = self.getc()
            if value is None or value == ord("\n"):
                return

    def scan_int(self) -> Optional[int]:
        self.pos = _WHITESPACE_RE.match(self.raw, self.pos).end()
        match = _INT_RE.match(self.raw, self.pos)
        if match is None:
            return None
        self.pos = match.end()
        return int(match.group())


def _parse_pam(cursor: _Cursor, info: PamMetadata) -> None:
    while True:
        raw_line = cursor.readline(_PAM_LINE_LIMIT)
        if not raw_line:
            return
        line = raw_line.decode("latin-1")
        if line == "ENDHDR\n":
            return
        if line.startswith("#"):
            continue
        key, sep, value = line.partition(" ")
        if not sep:
            return
        if key == "WIDTH":
            info.width = _atoi(value)
        elif key == "HEIGHT":
            info.height = _atoi(value)
        elif key == "DEPTH":
            info.depth = _atoi(value)
        elif key == "MAXVAL":
            info.maxval = _atoi(value)
        elif key == "TUPLTYPE":
            pass  # DEPTH alone determines the pixel layout
        else:
            logger.warning("unrecognized key %s in PAM header", key)


def _check_nl(cursor: _Cursor) -> None:
    if cursor.getc() != ord("\n"):
        raise PamError("PNM maximal value isn't immediately followed by <NL>")


def _parse_pnm(cursor: _Cursor, pnm_id: str, info: PamMetadata) -> None:
    if pnm_id in "123":
        raise PamError(f"plain (ASCII) PNM is not supported, input is P{pnm_id}")
    if pnm_id == "4":
        info.depth = 1
        info.maxval = 1
        info.bitmap_pbm = True
    elif pnm_id == "5":
        info.depth = 1
    elif pnm_id == "6":
        info.depth = 3
    else:
        raise PamError(f"wrong PNM type P{pnm_id}")

    items_read = 0
    while not cursor.at_end:
        value = cursor.scan_int()
        if value is not None:
            item = items_read
            items_read += 1
            if item == 0:
                info.width = value
            elif item == 1:
                info.height = value
                if info.bitmap_pbm:
                    _check_nl(cursor)
                    return
            else:
                info.maxval = value
                _check_nl(cursor)
                return
        elif cursor.getc() == ord("#"):
            cursor.skip_line()
        else:
            break
    raise PamError(
        f"problem parsing PNM header, number of header items successfully read: {items_read}"
    )


def _validate(info: PamMetadata) -> None:
    problems = []
    if info.width <= 0 or info.height <= 0:
        problems.append(f"unspecified/incorrect size {info.width}x{info.height}")
    if info.depth <= 0:
        problems.append(f"unspecified/incorrect depth {info.depth}")
    if info.maxval <= 0 or info.maxval > _MAX_MAXVAL:
        problems.append(f"unspecified/incorrect maximal value {info.maxval}")
    if problems:
        raise PamError("; ".join(problems))


def _parse(path: PathLike) -> Tuple[PamMetadata, _Cursor]:
    cursor = _Cursor(Path(path).read_bytes())
    info = PamMetadata()
    magic = cursor.readline(3)
    if magic == b"P7\n":
        _parse_pam(cursor, info)
    elif len(magic) == 3 and magic[:1] == b"P" and magic[2] in _WHITESPACE:
        _parse_pnm(cursor, chr(magic[1]), info)
    else:
        raise PamError(f"file '{path}' doesn't seem to be valid PAM or PNM")
    _validate(info)
    return info, cursor


def probe_pam(path: PathLike) -> PamMetadata:
    """Parse and validate the header of a PAM or PNM file."""
    info, _ = _parse(path)
    return info


def read_pam(path: PathLike) -> Tuple[PamMetadata, bytes]:
    """Read a PAM or PNM file, returning its header and raw sample bytes."""
    info, cursor = _parse(path)
    length = info.data_length
    data = cursor.raw[cursor.pos:cursor.pos + length]
    if len(data) != length:
        raise PamError(
            f"unable to load PAM/PNM data from file - read {len(data)} B, expected {length} B"
        )
    return info, data


_TUPLE_TYPES = {4: "RGB_ALPHA", 3: "RGB", 2: "GRAYSCALE_ALPHA", 1: "GRAYSCALE"}


def write_pam(path: PathLike, width: int, height: int, depth: int, maxval: int,
              data, pnm: bool = False) -> None:
    """Write raw samples as a binary PNM (P5/P6) or PAM (P7) file."""
    if pnm:
        if depth not in (1, 3):
            raise PamError("only 1 or 3 channels supported for PNM")
        header = f"P{5 if depth == 1 else 6}\n{width} {height}\n{maxval}\n"
    else:
        tuple_type = _TUPLE_TYPES.get(depth)
        if tuple_type is None:
            logger.warning("wrong depth: %d", depth)
            tuple_type = "INVALID"
        header = (
            f"P7\nWIDTH {width}\nHEIGHT {height}\nDEPTH {depth}\n"
            f"MAXVAL {maxval}\nTUPLTYPE {tuple_type}\nENDHDR\n"
        )
    length = width * height * depth * (1 if maxval <= 255 else 2)
    view = memoryview(data).cast("B")
    if view.nbytes < length:
        raise PamError(f"unable to write PAM/PNM data - length {length}, available {view.nbytes}")
    with open(path, "wb") as file:
        file.write(header.encode("ascii"))
        file.write(view[:length])