"""Buffered, seekable, endian-aware binary reader.

The parser hops between directory headers and out-of-line value data, so
the reader keeps a window of up to 4 KB and only touches the underlying
stream when a read or seek falls outside it.
"""

import io
import struct
from typing import BinaryIO

from tiffexif.models import ByteOrder

DEFAULT_BUFFER_SIZE = 4096


class EndianBinaryReader:
    """Read numbers and byte ranges from a stream in a fixed byte order."""

    def __init__(self, stream: BinaryIO, byte_order: ByteOrder,
                 leave_open: bool = False, buffer_size: int = DEFAULT_BUFFER_SIZE):
        if stream is None:
            raise TypeError('stream must not be None')
        self._stream = stream
        self._byte_order = byte_order
        self._leave_open = leave_open
        self._length = self._stream_length(stream)
        self._buffer_size = max(1, min(self._length, buffer_size))
        self._buffer = bytearray(self._buffer_size)
        self._read_offset = 0
        self._read_length = 0
        self._closed = False

    @staticmethod
    def _stream_length(stream: BinaryIO) -> int:
        current = stream.tell()
        end = stream.seek(0, io.SEEK_END)
        stream.seek(current)
        return end

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        if self._closed:
            return
        self._closed = True
        if not self._leave_open:
            self._stream.close()

    @property
    def byte_order(self) -> ByteOrder:
        return self._byte_order

    @property
    def length(self) -> int:
        self._check_open()
        return self._length

    @property
    def position(self) -> int:
        self._check_open()
        return self._stream.tell() - self._read_length + self._read_offset

    @position.setter
    def position(self, value: int):
        if value < 0:
            raise ValueError(f'position must be non-negative, got {value}')
        current = self.position
        if value == current:
            return

        buffer_start = current - self._read_offset
        buffer_end = buffer_start + self._read_length

        if buffer_start <= value <= buffer_end:
            # Inside the buffered window: just move the cursor
            self._read_offset = value - buffer_start
        else:
            self._read_offset = 0
            self._read_length = 0
            self._stream.seek(value)

    # ------------------------------------------------------------------
    # Raw byte access
    # ------------------------------------------------------------------

    def read_bytes(self, count: int) -> bytes:
        """Read exactly `count` bytes. Raises EOFError on a short stream."""
        if count < 0:
            raise ValueError(f'count must be non-negative, got {count}')
        self._check_open()
        if count == 0:
            return b''

        if self._read_offset + count <= self._read_length:
            start = self._read_offset
            self._read_offset += count
            return bytes(self._buffer[start:start + count])

        # Take whatever is left in the buffer, then go to the stream
        unread = self._read_length - self._read_offset
        parts = [bytes(self._buffer[self._read_offset:self._read_length])] if unread > 0 else []
        remaining = count - unread
        while remaining > 0:
            chunk = self._stream.read(remaining)
            if not chunk:
                raise EOFError(f'needed {count} bytes, stream ended after {count - remaining}')
            parts.append(chunk)
            remaining -= len(chunk)

        self._read_offset = 0
        self._read_length = 0
        return b''.join(parts)

    def readinto(self, target) -> int:
        """Fill `target` from the current position; returns the number of bytes read.

        Unlike read_bytes this may return fewer bytes than requested.
        """
        self._check_open()
        view = memoryview(target).cast('B')
        count = len(view)
        if count == 0:
            return 0

        if self._read_offset + count <= self._read_length:
            view[:] = self._buffer[self._read_offset:self._read_offset + count]
            self._read_offset += count
            return count

        unread = self._read_length - self._read_offset
        if unread > 0:
            view[:unread] = self._buffer[self._read_offset:self._read_length]
        self._read_offset = 0
        self._read_length = 0

        total = unread
        n = self._stream.readinto(view[unread:])
        return total + (n or 0)

    def read_ascii_string(self, length: int) -> str:
        if length < 0:
            raise ValueError(f'length must be non-negative, got {length}')
        self._check_open()
        if length == 0:
            return ''
        self._ensure_buffer(length)
        start = self._read_offset
        self._read_offset += length
        return self._buffer[start:start + length].decode('ascii', errors='replace')

    # ------------------------------------------------------------------
    # Numeric reads
    # ------------------------------------------------------------------

    def _unpack(self, fmt: str, size: int):
        self._check_open()
        self._ensure_buffer(size)
        value = struct.unpack_from(self._byte_order.value + fmt, self._buffer, self._read_offset)[0]
        self._read_offset += size
        return value

    def read_byte(self) -> int:
        return self._unpack('B', 1)

    def read_uint16(self) -> int:
        return self._unpack('H', 2)

    def read_int16(self) -> int:
        return self._unpack('h', 2)

    def read_uint32(self) -> int:
        return self._unpack('I', 4)

    def read_int32(self) -> int:
        return self._unpack('i', 4)

    def read_uint64(self) -> int:
        return self._unpack('Q', 8)

    def read_int64(self) -> int:
        return self._unpack('q', 8)

    def read_single(self) -> float:
        return self._unpack('f', 4)

    def read_double(self) -> float:
        return self._unpack('d', 8)

    # ------------------------------------------------------------------
    # Buffer management
    # ------------------------------------------------------------------

    def _ensure_buffer(self, count: int):
        if self._read_offset + count > self._read_length:
            self._fill_buffer(count)

    def _fill_buffer(self, min_bytes: int):
        """Refill so that at least `min_bytes` unread bytes are buffered."""
        unread = self._read_length - self._read_offset
        if min_bytes > len(self._buffer):
            # Only ascii strings longer than the window get here
            self._buffer.extend(bytes(min_bytes - len(self._buffer)))

        if unread > 0:
            self._buffer[0:unread] = self._buffer[self._read_offset:self._read_length]

        filled = unread
        view = memoryview(self._buffer)
        try:
            while filled < min_bytes:
                n = self._stream.readinto(view[filled:])
                if not n:
                    # Keep position consistent for a caller that recovers
                    self._read_offset = 0
                    self._read_length = filled
                    raise EOFError(f'needed {min_bytes} bytes, stream ended after {filled}')
                filled += n
        finally:
            view.release()

        self._read_offset = 0
        self._read_length = filled

    def _check_open(self):
        if self._closed:
            raise ValueError('I/O operation on closed EndianBinaryReader')
