import pytest

from rawjpegkit.y4m import (
    Y4MError,
    Y4MMetadata,
    Y4MSubsampling,
    data_length,
    probe_y4m,
    read_y4m,
    write_y4m,
)


def _payload(info):
    return bytes(i % 251 for i in range(data_length(info)))


def test_header_bytes(tmp_path):
    path = tmp_path / "a.y4m"
    info = Y4MMetadata(4, 2, 8, Y4MSubsampling.S420, False)
    data = _payload(info)
    write_y4m(path, info, data)
    header = b"YUV4MPEG2 W4 H2 F25:1 Ip A0:0 C420 XCOLORRANGE=FULL\nFRAME\n"
    assert path.read_bytes() == header + data


@pytest.mark.parametrize("subsampling", list(Y4MSubsampling))
@pytest.mark.parametrize("limited", [False, True])
def test_round_trip(tmp_path, subsampling, limited):
    path = tmp_path / "r.y4m"
    info = Y4MMetadata(5, 3, 8, subsampling, limited)
    data = _payload(info)
    write_y4m(path, info, data)
    read_info, read_data = read_y4m(path)
    assert read_info == info
    assert read_data == data


def test_ten_bit_round_trip(tmp_path):
    path = tmp_path / "deep.y4m"
    info = Y4MMetadata(4, 4, 10, Y4MSubsampling.S422, True)
    data = _payload(info)
    write_y4m(path, info, data)
    assert b" C422p10 " in path.read_bytes()
    assert data_length(info) == 2 * data_length(Y4MMetadata(4, 4, 8, Y4MSubsampling.S422))
    read_info, read_data = read_y4m(path)
    assert read_info == info
    assert read_data == data


def test_mono_high_bitdepth_has_no_p(tmp_path):
    path = tmp_path / "m.y4m"
    info = Y4MMetadata(2, 2, 10, Y4MSubsampling.MONO, False)
    write_y4m(path, info, _payload(info))
    assert b" Cmono10 " in path.read_bytes()
    assert probe_y4m(path) == info


def test_yuva_header(tmp_path):
    path = tmp_path / "a.y4m"
    info = Y4MMetadata(1, 1, 8, Y4MSubsampling.YUVA, False)
    write_y4m(path, info, _payload(info))
    assert b" C444alpha " in path.read_bytes()


def test_yuva_high_bitdepth_rejected(tmp_path):
    with pytest.raises(Y4MError):
        write_y4m(tmp_path / "a.y4m", Y4MMetadata(1, 1, 10, Y4MSubsampling.YUVA), bytes(8))


def test_write_rejects_short_data(tmp_path):
    with pytest.raises(Y4MError):
        write_y4m(tmp_path / "a.y4m", Y4MMetadata(2, 2, 8, Y4MSubsampling.S444), bytes(3))


def test_odd_dimensions_round_chroma_up():
    assert data_length(Y4MMetadata(3, 3, 8, Y4MSubsampling.S420)) == 17


def test_unknown_subsampling_length():
    with pytest.raises(Y4MError):
        data_length(Y4MMetadata(2, 2, 8, 411))


def test_probe_foreign_header(tmp_path):
    path = tmp_path / "f.y4m"
    path.write_bytes(
        b"YUV4MPEG2 W2 H2 F30000:1001 Ip C420jpeg XCOLORRANGE=LIMITED\nFRAME\n" + bytes(6)
    )
    info = probe_y4m(path)
    assert info.subsampling == Y4MSubsampling.S420
    assert info.bitdepth == 8
    assert info.limited is True
    assert (info.width, info.height) == (2, 2)


def test_truncated_frame(tmp_path):
    path = tmp_path / "t.y4m"
    path.write_bytes(b"YUV4MPEG2 W2 H2 C444\nFRAME\n" + bytes(5))
    assert probe_y4m(path).subsampling == Y4MSubsampling.S444
    with pytest.raises(Y4MError):
        read_y4m(path)


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_y4m(tmp_path / "missing.y4m")