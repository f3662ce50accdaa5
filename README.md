# rawjpegkit

Pure-Python helpers for the raw side of a JPEG pipeline, with no
dependencies outside the standard library.

- `rawjpegkit.types`: colour spaces (`ColorSpace`), pixel layouts
  (`PixelFormat`), `SamplingFactor`, `ImageParameters`, and helpers such as
  `color_space_by_name`, `pixel_format_by_name`, `image_calculate_size`,
  `make_sampling_factor`, `clamp` and `div_round_up`.
- `rawjpegkit.pam`: reading and writing binary PAM (P7) and PNM (P4, P5, P6)
  files with `probe_pam`, `read_pam` and `write_pam`. Plain (ASCII) PNM is
  rejected.
- `rawjpegkit.y4m`: reading and writing single-frame YUV4MPEG2 files with
  `probe_y4m`, `read_y4m`, `write_y4m` and `data_length`.
- `rawjpegkit.image_delegate`: probing, loading and saving raw images by
  `ImageFileFormat` (`probe_image`, `load_image`, `save_image`, and the
  `get_*_delegate` lookups). This covers PGM/PPM/PNM/PAM, Y4M, and synthetic
  `.tst` test patterns named like `1920x1080_rgb.tst` or
  `1920x1080_ycbcr-jpeg_422-u8-p1020.tst`. These produce a vertical grey ramp
  of the size and layout in the name.
- `rawjpegkit.writer`: `JpegWriter`, an in-memory buffer that emits baseline
  JPEG header segments: SOI, JFIF APP0, Adobe APP14, SPIFF, DQT, SOF0, DHT,
  DRI and COM. Its `write_header` method takes an `EncoderState`.
- `rawjpegkit.scan`: `ScanWriter`, which writes SOS headers. It can precede
  them with segment-info headers and fill those with the offset of each
  restart segment.

## Installation

```
pip install .
```

## Examples

Reading and writing a PAM file:

```python
from rawjpegkit.pam import read_pam, write_pam

write_pam("out.pam", 2, 1, 3, 255, bytes([255, 0, 0, 0, 255, 0]), False)
info, data = read_pam("out.pam")
print(info.width, info.height, info.depth, info.maxval)  # 2 1 3 255
```

Reading and writing a Y4M frame:

```python
from rawjpegkit.y4m import Y4MMetadata, Y4MSubsampling, data_length, read_y4m, write_y4m

info = Y4MMetadata(width=4, height=2, bitdepth=8,
                   subsampling=Y4MSubsampling.S420, limited=True)
write_y4m("frame.y4m", info, bytes(data_length(info)))
meta, frame = read_y4m("frame.y4m")
```

Probing and loading through the format-dispatch layer:

```python
from rawjpegkit.image_delegate import ImageFileFormat, load_image, probe_image

params = probe_image("640x480_rgb.tst", ImageFileFormat.TST, False)
data = load_image("640x480_rgb.tst", ImageFileFormat.TST)
```

Writing a JPEG header and a scan header for a one-component image:

```python
from rawjpegkit.types import ColorSpace, ComponentType, HuffmanType
from rawjpegkit.writer import ComponentInfo, EncoderState, HuffmanTable, JpegWriter
from rawjpegkit.scan import ScanWriter

dc = HuffmanTable(bits=(0, 1, 5, 1, 1, 1, 1, 1, 1) + (0,) * 7, huffval=tuple(range(12)))
ac = HuffmanTable(bits=(0, 2) + (0,) * 14, huffval=(0x00, 0x01))
state = EncoderState(
    width=16,
    height=8,
    components=[ComponentInfo(ComponentType.LUMINANCE, segment_count=2)],
    color_space_internal=ColorSpace.YCBCR_JPEG,
    quantization_tables={ComponentType.LUMINANCE: [1] * 64},
    huffman_tables={
        (ComponentType.LUMINANCE, HuffmanType.DC): dc,
        (ComponentType.LUMINANCE, HuffmanType.AC): ac,
    },
    restart_interval=8,
    segment_info=True,
)

writer = JpegWriter()
writer.write_header(state)
scan = ScanWriter(writer, state)
scan.write_scan_header(0)
scan.write_segment_info()  # call at the start of each restart segment
header = writer.getvalue()
```

Errors are reported by raising exceptions. `PamError`, `Y4MError` and
`ImageFormatError` are subclasses of `ValueError`.

## What the package does not do

It writes JPEG headers but does not encode image data. It has no colour
conversion, DCT, quantization or Huffman entropy coding. It does not decode
JPEG files, and it provides no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```