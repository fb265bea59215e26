"""Tests for program image loading."""

import pytest
from lc3vm.errors import ImageLoadError
from lc3vm.loader import Image, image_to_bytes, load_image, parse_image, read_image_file
from lc3vm.memory import Memory


class TestParseImage:
    """Image parsing tests."""

    def test_origin_and_words(self):
        """Big-endian origin followed by big-endian words."""
        image = parse_image(bytes([0x30, 0x00, 0x12, 0x34, 0xF0, 0x25]))
        assert image.origin == 0x3000
        assert image.words == [0x1234, 0xF025]

    def test_origin_only(self):
        """An image may contain no words."""
        image = parse_image(b"\x40\x00")
        assert image.origin == 0x4000
        assert image.words == []

    @pytest.mark.parametrize("data", [b"", b"\x30"])
    def test_missing_origin(self, data):
        """Fewer than two bytes is a load error."""
        with pytest.raises(ImageLoadError):
            parse_image(data)

    def test_trailing_odd_byte_ignored(self):
        """A dangling final byte is dropped."""
        image = parse_image(b"\x30\x00\x00\x01\xff")
        assert image.words == [0x0001]

    def test_clipped_at_memory_end(self):
        """Words that would pass xFFFF are dropped."""
        image = parse_image(b"\xff\xfe" + b"\x00\x01" * 4)
        assert image.words == [1, 1]

    def test_to_bytes(self):
        """Serialization matches the on-disk layout."""
        data = image_to_bytes(Image(origin=0x3000, words=[0xF025]))
        assert data == b"\x30\x00\xf0\x25"


class TestImageFiles:
    """Reading images from disk."""

    def test_read_image_file(self, tmp_path):
        """Reads and names the image after its path."""
        path = tmp_path / "prog.obj"
        path.write_bytes(b"\x30\x00\xf0\x25")
        image = read_image_file(path)
        assert image.origin == 0x3000
        assert image.words == [0xF025]
        assert image.name == str(path)

    def test_missing_file(self, tmp_path):
        """Unreadable file is a load error."""
        with pytest.raises(ImageLoadError) as excinfo:
            read_image_file(tmp_path / "missing.obj")
        assert "missing.obj" in excinfo.value.message

    def test_load_image(self):
        """load_image writes words at the origin."""
        mem = Memory()
        count = load_image(Image(origin=0x3000, words=[1, 2]), mem)
        assert count == 2
        assert mem.read(0x3000) == 1
        assert mem.read(0x3001) == 2
        assert mem.read(0x3002) == 0
