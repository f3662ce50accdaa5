import pytest

from rawjpegkit.types import ColorSpace, ComponentType, HuffmanType, SamplingFactor
from rawjpegkit.writer import (
    ComponentInfo,
    EncoderState,
    HeaderType,
    HuffmanTable,
    JpegWriter,
    Marker,
    component_id,
)

QTABLE = list(range(1, 65))
HTABLE = HuffmanTable(bits=(0, 2, 1) + (0,) * 13, huffval=(0, 1, 2))


def make_state(color_space, types, header_type=HeaderType.DEFAULT, quality=75, restart=8):
    components = [
        ComponentInfo(type=t, sampling_factor=SamplingFactor(2, 2) if i == 0 else SamplingFactor(1, 1))
        for i, t in enumerate(types)
    ]
    return EncoderState(
        width=640,
        height=480,
        components=components,
        color_space_internal=color_space,
        quantization_tables={ComponentType.LUMINANCE: QTABLE, ComponentType.CHROMINANCE: QTABLE},
        huffman_tables={
            (c, h): HTABLE for c in ComponentType for h in HuffmanType
        },
        quality=quality,
        restart_interval=restart,
        header_type=header_type,
    )


YCC = [ComponentType.LUMINANCE, ComponentType.CHROMINANCE, ComponentType.CHROMINANCE]
LUMA3 = [ComponentType.LUMINANCE] * 3


def segments(data):
    assert data[:2] == b"\xff\xd8"
    result = [(Marker.SOI, b"")]
    pos = 2
    while pos < len(data):
        assert data[pos] == 0xFF
        marker = data[pos + 1]
        if marker == Marker.SOI:
            result.append((marker, b""))
            pos += 2
            continue
        length = int.from_bytes(data[pos + 2:pos + 4], "big")
        if marker == Marker.APP8 and length == 8:
            # SPIFF end-of-directory entry: its length counts the following SOI
            result.append((marker, data[pos + 4:pos + 8]))
            pos += 8
            continue
        result.append((marker, data[pos + 4:pos + 2 + length]))
        pos += 2 + length
    assert pos == len(data)
    return result


def header(state):
    writer = JpegWriter()
    writer.write_header(state)
    return segments(writer.getvalue())


def test_emit_primitives():
    writer = JpegWriter()
    writer.emit_byte(0x1FF)
    writer.emit_2byte(0x1234)
    writer.emit_4byte(0x89ABCDEF)
    writer.emit_marker(Marker.DRI)
    assert writer.getvalue() == b"\xff\x12\x34\x89\xab\xcd\xef\xff\xdd"
    assert len(writer) == 9


def test_soi():
    writer = JpegWriter()
    writer.write_soi()
    assert writer.getvalue() == b"\xff\xd8"


def test_app0_bytes():
    writer = JpegWriter()
    writer.write_app0()
    assert writer.getvalue() == (
        b"\xff\xe0\x00\x10JFIF\x00\x01\x01\x01\x01\x2c\x01\x2c\x00\x00"
    )


def test_app14_structure():
    writer = JpegWriter()
    writer.write_app14()
    data = writer.getvalue()
    assert data[:2] == b"\xff\xee"
    assert data[4:9] == b"Adobe"
    assert int.from_bytes(data[2:4], "big") == len(data) - 2
    assert data[-1] == 0


def test_component_id():
    assert component_id(0, ColorSpace.RGB) == ord("R")
    assert component_id(3, ColorSpace.RGB) == ord("A")
    assert component_id(0, ColorSpace.YCBCR_JPEG) == 1
    assert component_id(2, ColorSpace.YCBCR_BT709) == 3
    with pytest.raises(ValueError):
        component_id(4, ColorSpace.RGB)


def test_dqt():
    writer = JpegWriter()
    writer.write_dqt(ComponentType.CHROMINANCE, QTABLE)
    data = writer.getvalue()
    assert data[:4] == b"\xff\xdb\x00\x43"
    assert data[4] == 1
    assert list(data[5:]) == QTABLE
    with pytest.raises(ValueError):
        writer.write_dqt(ComponentType.LUMINANCE, [1] * 63)


@pytest.mark.parametrize(
    "comp_type, huff_type, index",
    [
        (ComponentType.LUMINANCE, HuffmanType.DC, 0x00),
        (ComponentType.LUMINANCE, HuffmanType.AC, 0x10),
        (ComponentType.CHROMINANCE, HuffmanType.DC, 0x01),
        (ComponentType.CHROMINANCE, HuffmanType.AC, 0x11),
    ],
)
def test_dht(comp_type, huff_type, index):
    writer = JpegWriter()
    writer.write_dht(comp_type, huff_type, HTABLE)
    data = writer.getvalue()
    assert data[:2] == b"\xff\xc4"
    assert int.from_bytes(data[2:4], "big") == len(data) - 2
    assert data[4] == index
    assert tuple(data[5:21]) == HTABLE.bits
    assert tuple(data[21:]) == HTABLE.huffval


def test_huffman_table_validation():
    with pytest.raises(ValueError):
        HuffmanTable(bits=(1,) * 15, huffval=(0,))
    with pytest.raises(ValueError):
        HuffmanTable(bits=(0, 3) + (0,) * 14, huffval=(0, 1))


def test_dri():
    writer = JpegWriter()
    writer.write_dri(8)
    assert writer.getvalue() == b"\xff\xdd\x00\x04\x00\x08"


def test_com():
    writer = JpegWriter()
    writer.write_com("CS=ITU601")
    data = writer.getvalue()
    assert data[:2] == b"\xff\xfe"
    assert int.from_bytes(data[2:4], "big") == len(data) - 2
    assert data[4:] == b"CS=ITU601\x00"


def test_sof0():
    state = make_state(ColorSpace.YCBCR_JPEG, YCC)
    writer = JpegWriter()
    writer.write_sof0(state)
    data = writer.getvalue()
    assert data[:2] == b"\xff\xc0"
    assert int.from_bytes(data[2:4], "big") == len(data) - 2
    assert data[4] == 8
    assert int.from_bytes(data[5:7], "big") == 480
    assert int.from_bytes(data[7:9], "big") == 640
    assert data[9] == 3
    assert data[10:] == bytes([1, 0x22, 0, 2, 0x11, 1, 3, 0x11, 1])


def test_default_ycbcr_jpeg_uses_jfif():
    segs = header(make_state(ColorSpace.YCBCR_JPEG, YCC))
    markers = [m for m, _ in segs]
    assert markers == [
        Marker.SOI, Marker.APP0, Marker.DQT, Marker.DQT, Marker.SOF0,
        Marker.DHT, Marker.DHT, Marker.DHT, Marker.DHT, Marker.DRI, Marker.COM,
    ]
    dht_indexes = [p[0] for m, p in segs if m == Marker.DHT]
    assert dht_indexes == [0x00, 0x10, 0x01, 0x11]


def test_default_rgb_uses_adobe_and_single_tables():
    segs = header(make_state(ColorSpace.RGB, LUMA3))
    markers = [m for m, _ in segs]
    assert markers[1] == Marker.APP14
    assert markers.count(Marker.DQT) == 1
    assert markers.count(Marker.DHT) == 2
    sof = dict(segs)[Marker.SOF0]
    assert sof[6::3] == b"RGB"


def test_default_bt709_uses_spiff():
    segs = header(make_state(ColorSpace.YCBCR_BT709, YCC))
    markers = [m for m, _ in segs]
    assert markers[:5] == [Marker.SOI, Marker.APP8, Marker.APP8, Marker.SOI, Marker.DQT]
    spiff = segs[1][1]
    assert spiff[:6] == b"SPIFF\0"
    assert spiff[9] == 3  # component count
    assert int.from_bytes(spiff[10:14], "big") == 480
    assert int.from_bytes(spiff[14:18], "big") == 640
    assert spiff[18] == 1  # BT.709
    assert segs[2][1] == b"\x00\x00\x00\x01"


def test_bt601_adds_comment():
    segs = header(make_state(ColorSpace.YCBCR_BT601, YCC))
    comments = [p for m, p in segs if m == Marker.COM]
    assert comments[-1] == b"CS=ITU601\x00"
    assert segs[1][0] == Marker.APP8


def test_four_components_use_spiff():
    segs = header(make_state(ColorSpace.RGB, LUMA3 + [ComponentType.LUMINANCE]))
    assert segs[1][0] == Marker.APP8
    assert segs[1][1][9] == 4


@pytest.mark.parametrize(
    "header_type, marker",
    [
        (HeaderType.JFIF, Marker.APP0),
        (HeaderType.ADOBE, Marker.APP14),
        (HeaderType.SPIFF, Marker.APP8),
    ],
)
def test_explicit_header_type(header_type, marker):
    segs = header(make_state(ColorSpace.RGB, LUMA3, header_type=header_type))
    assert segs[1][0] == marker


def test_quality_is_clamped_in_comment():
    segs = header(make_state(ColorSpace.YCBCR_JPEG, YCC, quality=150))
    comment = [p for m, p in segs if m == Marker.COM][0]
    assert comment.endswith(b"quality = 100\x00")


def test_restart_interval_in_header():
    segs = header(make_state(ColorSpace.YCBCR_JPEG, YCC, restart=16))
    assert dict(segs)[Marker.DRI] == (16).to_bytes(2, "big")


def test_missing_table_raises():
    state = make_state(ColorSpace.YCBCR_JPEG, YCC)
    state.huffman_tables = {}
    with pytest.raises(ValueError):
        JpegWriter().write_header(state)