"""Program image loading.

An image file is a big-endian 16-bit origin address followed by the
big-endian 16-bit words to place at that origin.
"""

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import Union

from .errors import ImageLoadError
from .memory import MEMORY_SIZE, Memory

logger = logging.getLogger(__name__)


@dataclass
class Image:
    """Parsed program image."""
    origin: int
    words: list[int] = field(default_factory=list)
    name: str = "<image>"


def parse_image(data: bytes, name: str = "<image>") -> Image:
    """Parse image bytes.

    Words that would fall past the end of memory are dropped.

    Raises:
        ImageLoadError: data is too short to hold an origin
    """
    if len(data) < 2:
        raise ImageLoadError(f"{name}: image is missing its origin word")

    if len(data) % 2:
        logger.warning("%s: ignoring trailing odd byte", name)
        data = data[:-1]

    (origin,) = struct.unpack_from(">H", data)
    count = len(data) // 2 - 1
    words = list(struct.unpack_from(f">{count}H", data, 2))

    room = MEMORY_SIZE - origin
    if len(words) > room:
        logger.warning(
            "%s: %d words past end of memory dropped", name, len(words) - room
        )
        words = words[:room]

    return Image(origin=origin, words=words, name=name)


def read_image_file(path: Union[str, Path]) -> Image:
    """Read and parse an image file.

    Raises:
        ImageLoadError: file cannot be read or parsed
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ImageLoadError(f"failed to load image {path}: {e.strerror}") from e
    return parse_image(data, name=str(path))


def load_image(image: Image, memory: Memory) -> int:
    """Copy an image into memory at its origin.

    Returns:
        Number of words written
    """
    count = memory.load(image.origin, image.words)
    logger.info(
        "Loaded %s: %d words at x%04X", image.name, count, image.origin
    )
    return count


def image_to_bytes(image: Image) -> bytes:
    """Serialize an image back to the on-disk format."""
    return struct.pack(f">H{len(image.words)}H", image.origin, *image.words)
