"""Scan headers and the segment index that lets decoders seek to restart segments."""

from __future__ import annotations

from typing import List, Optional

from .types import MAX_HEADER_SIZE, ComponentType
from .writer import EncoderState, JpegWriter, Marker, component_id

_SEGMENT_ENTRY_SIZE = 4
_TABLE_SELECTORS = {
    ComponentType.LUMINANCE: 0x00,
    ComponentType.CHROMINANCE: 0x11,
}


class ScanWriter:
    """Writes SOS headers and fills in segment offsets for one encoded image.

    When segment info is enabled, each scan header is preceded by one or more
    application headers holding a 4-byte big-endian offset per segment, relative
    to the start of the scan data. The space is reserved by ``write_scan_header``
    and filled by ``write_segment_info`` as each segment begins.
    """

    def __init__(self, writer: JpegWriter, state: EncoderState) -> None:
        self.writer = writer
        self.state = state
        self.header_offsets: List[int] = []
        self.segment_index = 0
        self.scan_start: Optional[int] = None

    @property
    def segment_info_count(self) -> int:
        """Number of segment info headers emitted for the current scan."""
        return len(self.header_offsets)

    def _table_selector(self, component_index: int) -> int:
        component_type = ComponentType(self.state.components[component_index].type)
        return _TABLE_SELECTORS[component_type]

    def _scan_segment_count(self, scan_index: int) -> int:
        if self.state.interleaved:
            return self.state.segment_count
        return self.state.components[scan_index].segment_count

    def _write_segment_info_headers(self, scan_index: int) -> None:
        data_size = (self._scan_segment_count(scan_index) + 1) * _SEGMENT_ENTRY_SIZE
        self.header_offsets = []
        self.segment_index = 0
        self.scan_start = None
        writer = self.writer
        while data_size > 0:
            header_size = min(data_size, MAX_HEADER_SIZE)
            data_size -= header_size
            writer.emit_marker(Marker.SEGMENT_INFO)
            writer.emit_2byte(3 + header_size)
            writer.emit_byte(scan_index)
            self.header_offsets.append(len(writer.buffer))
            writer.buffer += bytes(header_size)

    def write_scan_header(self, scan_index: int) -> None:
        """Emit optional segment info headers followed by the SOS segment."""
        state = self.state
        writer = self.writer
        if not state.interleaved and not 0 <= scan_index < state.comp_count:
            raise IndexError(f"scan index {scan_index} has no matching component")
        if state.segment_info and state.restart_interval > 0:
            self._write_segment_info_headers(scan_index)

        writer.emit_marker(Marker.SOS)
        if state.interleaved:
            writer.emit_2byte(6 + 2 * state.comp_count)
            writer.emit_byte(state.comp_count)
            for index in range(state.comp_count):
                writer.emit_byte(component_id(index, state.color_space_internal))
                writer.emit_byte(self._table_selector(index))
        else:
            writer.emit_2byte(8)
            writer.emit_byte(1)
            writer.emit_byte(component_id(scan_index, state.color_space_internal))
            writer.emit_byte(self._table_selector(scan_index))

        writer.emit_byte(0)  # Ss
        writer.emit_byte(0x3F)  # Se
        writer.emit_byte(0)  # Ah/Al

    def write_segment_info(self) -> None:
        """Record the current output position as the start of the next segment."""
        if not self.state.segment_info:
            return
        current = len(self.writer.buffer)
        if self.scan_start is None:
            self.scan_start = current
        position = current - self.scan_start

        byte_index = self.segment_index * _SEGMENT_ENTRY_SIZE
        header_index, data_index = divmod(byte_index, MAX_HEADER_SIZE)
        if header_index >= len(self.header_offsets):
            raise RuntimeError(
                f"no segment info space reserved for segment {self.segment_index}"
            )
        offset = self.header_offsets[header_index] + data_index
        self.writer.buffer[offset:offset + _SEGMENT_ENTRY_SIZE] = (
            position & 0xFFFFFFFF
        ).to_bytes(_SEGMENT_ENTRY_SIZE, "big")
        self.segment_index += 1