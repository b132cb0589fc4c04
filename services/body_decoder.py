# services/body_decoder.py
import asyncio
import gzip
import io
import zlib
from typing import AsyncIterable, BinaryIO, Union

from core.errors import DecodeError
from core.logger import logger

GZIP_MAGIC = b"\x1f\x8b"


def is_gzipped(buffer: BinaryIO) -> bool:
    """Checks the first two bytes for the gzip magic number. Leaves the buffer at 0."""
    buffer.seek(0)
    header = buffer.read(2)
    buffer.seek(0)
    return header == GZIP_MAGIC


def _decompress(buffer: BinaryIO) -> bytes:
    with gzip.GzipFile(fileobj=buffer, mode="rb") as gz:
        return gz.read()


async def decode_body(chunks: Union[AsyncIterable[bytes], bytes]) -> str:
    """
    Reads the whole request body and returns it as text.

    Gzip is detected by magic number, not by Content-Encoding, since the
    senders do not set that header consistently.

    Raises:
        DecodeError: the stream could not be read or the gzip data is malformed.
    """
    buffer = io.BytesIO()
    try:
        if isinstance(chunks, (bytes, bytearray)):
            buffer.write(chunks)
        else:
            async for chunk in chunks:
                buffer.write(chunk)
    except Exception as e:
        raise DecodeError(f"Failed to read request body: {e}") from e

    if is_gzipped(buffer):
        logger.info("Detected Gzip compression.")
        try:
            raw = await asyncio.to_thread(_decompress, buffer)
        except (OSError, EOFError, zlib.error) as e:
            raise DecodeError(f"Failed to decompress gzip body: {e}") from e
    else:
        raw = buffer.getvalue()

    # utf-8-sig drops a leading BOM; bad sequences become U+FFFD like a text reader would
    return raw.decode("utf-8-sig", errors="replace")
