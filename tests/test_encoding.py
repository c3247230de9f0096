import base64

import pytest

from autobom.encoding import attach_file, encode_file, encode_files, guess_mime_type
from autobom.errors import ReadError


def test_encode_files_preserves_order_and_mime_types(png_factory, pdf_factory, tmp_path):
    drawing = png_factory("drawings/front.png")
    cut_list = pdf_factory("drawings/cut_list.pdf", "Profile 45x90 L=1232 Qty=4")
    notes = tmp_path / "notes.bin"
    notes.write_bytes(b"\x00\x01\x02")

    attached = [attach_file(drawing), attach_file(cut_list), attach_file(notes)]
    encoded = encode_files(attached)

    assert [item.mime_type for item in encoded] == ["image/png", "application/pdf", "application/octet-stream"]
    assert [item.name for item in encoded] == ["front.png", "cut_list.pdf", "notes.bin"]
    assert base64.b64decode(encoded[0].data) == drawing.read_bytes()
    assert encoded[2].raw_bytes() == b"\x00\x01\x02"
    assert encoded[0].data_uri().startswith("data:image/png;base64,")


def test_encode_files_handles_empty_list():
    assert encode_files([]) == []


def test_attach_missing_file_raises_read_error(tmp_path):
    with pytest.raises(ReadError) as excinfo:
        attach_file(tmp_path / "missing.png")
    assert "missing.png" in str(excinfo.value)


def test_encode_file_removed_after_attach_raises_read_error(png_factory):
    drawing = png_factory("gone.png")
    attached = attach_file(drawing)
    drawing.unlink()

    with pytest.raises(ReadError) as excinfo:
        encode_file(attached)
    assert excinfo.value.path == attached.path


def test_explicit_mime_type_overrides_guess(png_factory):
    attached = attach_file(png_factory("scan.dat"), mime_type="image/jpeg")

    assert attached.mime_type == "image/jpeg"
    assert attached.is_image


def test_guess_mime_type_defaults_to_octet_stream(tmp_path):
    assert guess_mime_type(tmp_path / "drawing.unknownext") == "application/octet-stream"
