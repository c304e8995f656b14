# SPDX-FileCopyrightText: 2024-present Dan Pascu <dan@aethereal.link>
#
# SPDX-License-Identifier: AGPL-3.0-or-later

from collections.abc import Buffer, Iterable
from datetime import UTC, datetime, timedelta
from io import BytesIO
from typing import ClassVar, Self, SupportsBytes, SupportsIndex, SupportsInt, overload

from .exceptions import BodyTooLargeError

__all__ = (  # noqa: RUF022
    # Types

    'WireData',

    # Abstract types

    'UnsignedInteger',
    'FixedSize',

    # Concrete types

    'UInt64',

    'Timestamp',
    'Signature',
    'PacketBody',
)


type WireData = bytes | bytearray | memoryview | BytesIO


# Data types

type ConvertibleToInt = str | Buffer | SupportsInt | SupportsIndex


# Numeric types

class UnsignedInteger(int):
    _bits_: ClassVar[int] = NotImplemented
    _size_: ClassVar[int] = NotImplemented

    def __init_subclass__(cls, *, bits: int = NotImplemented, **kw: object) -> None:
        if bits is not NotImplemented:
            cls._bits_ = bits
            cls._size_ = bits // 8
        super().__init_subclass__(**kw)

    @overload
    def __new__(cls, x: ConvertibleToInt = ..., /) -> Self: ...

    @overload
    def __new__(cls, x: str | Buffer, /, base: SupportsIndex) -> Self: ...

    def __new__(cls, *args, **kw) -> Self:
        if cls._bits_ is NotImplemented:
            raise TypeError(f'Cannot instantiate abstract unsigned integer type {cls.__qualname__!r} that does not define its bit length')
        value = super().__new__(cls, *args, **kw)
        if value < 0 or value.bit_length() > cls._bits_:
            raise ValueError(f'Value is out of range for unsigned {cls._bits_}-bits integer: {value!r}')
        return value

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({super().__repr__()})'

    @classmethod
    def from_wire(cls, buffer: WireData) -> Self:
        if cls._size_ is NotImplemented:
            raise TypeError(f'Cannot instantiate abstract unsigned integer type {cls.__qualname__!r} that does not define its bit length')
        if isinstance(buffer, BytesIO):
            data = buffer.read(cls._size_)
        else:
            data = buffer[:cls._size_]
        if len(data) < cls._size_:
            raise ValueError(f'Insufficient data in buffer to extract {cls.__qualname__!r}')
        return cls.from_bytes(data, byteorder='big')

    def to_wire(self) -> bytes:
        return self.to_bytes(self._size_, byteorder='big')

    def wire_length(self) -> int:
        return self._size_


class UInt64(UnsignedInteger, bits=64):
    pass


class Timestamp(UInt64):
    """Milliseconds since the Unix epoch"""

    epoch: ClassVar[datetime] = datetime(1970, 1, 1, tzinfo=UTC)
    resolution: ClassVar[timedelta] = timedelta(milliseconds=1)

    @classmethod
    def from_datetime(cls, value: datetime) -> Self:
        """Convert a datetime to a timestamp, discarding anything finer than a millisecond"""
        if value.tzinfo is None:
            value = value.astimezone(UTC)  # naive datetimes are in local time
        return cls((value - cls.epoch) // cls.resolution)

    def to_datetime(self) -> datetime:
        """Return the timestamp as an aware UTC datetime (OverflowError if beyond what datetime supports)"""
        return self.epoch + self * self.resolution


# Byte strings

class FixedSize(bytes):
    """A fixed size bytes buffer"""

    _size_: ClassVar[int] = NotImplemented

    def __init_subclass__(cls, *, size: int = NotImplemented, **kw: object) -> None:
        if size is not NotImplemented:
            cls._size_ = size
        super().__init_subclass__(**kw)

    @overload
    def __new__(cls) -> Self: ...

    @overload
    def __new__(cls, o: Iterable[SupportsIndex] | SupportsIndex | SupportsBytes | Buffer, /) -> Self: ...

    @overload
    def __new__(cls, string: str, /, encoding: str, errors: str = ...) -> Self: ...

    def __new__(cls, *args, **kw):
        if cls._size_ is NotImplemented:
            raise TypeError(f'Cannot instantiate fixed size bytes type {cls.__qualname__!r} that does not define its size')
        instance = super().__new__(cls, *args, **kw)
        if len(instance) != cls._size_:
            raise ValueError(f'{cls.__qualname__!r} objects must have {cls._size_} bytes')
        return instance

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({super().__repr__()})'

    @classmethod
    def from_wire(cls, buffer: WireData) -> Self:
        if cls._size_ is NotImplemented:
            raise TypeError(f'Cannot instantiate fixed size bytes type {cls.__qualname__!r} that does not define its size')
        if isinstance(buffer, BytesIO):
            data = buffer.read(cls._size_)
        else:
            data = buffer[:cls._size_]
        if len(data) < cls._size_:
            raise ValueError(f'Insufficient data in buffer to extract {cls.__qualname__!r}')
        return cls(data)

    def to_wire(self) -> bytes:
        return bytes(self)

    def wire_length(self) -> int:
        return self._size_


class Signature(FixedSize, size=64):
    def __repr__(self) -> str:
        return f'<{self.__class__.__qualname__}: {self.hex()}>'


class PacketBody(bytes):
    """
    The packed DNS message carried by a record.

    It has no length prefix on the wire, it takes up whatever is left in
    the buffer after the fixed size fields that precede it.

    """

    _maxsize_: ClassVar[int] = 1000

    @overload
    def __new__(cls) -> Self: ...

    @overload
    def __new__(cls, o: Iterable[SupportsIndex] | SupportsIndex | SupportsBytes | Buffer, /) -> Self: ...

    def __new__(cls, *args, **kw):
        instance = super().__new__(cls, *args, **kw)
        if len(instance) > cls._maxsize_:
            raise BodyTooLargeError(f'The packed message is too large ({len(instance)} > {cls._maxsize_} bytes)')
        return instance

    def __repr__(self) -> str:
        return f'{self.__class__.__qualname__}({super().__repr__() if self else ''})'

    @classmethod
    def from_wire(cls, buffer: WireData) -> Self:
        if isinstance(buffer, BytesIO):
            data = buffer.read()
        else:
            data = bytes(buffer)
        return cls(data)

    def to_wire(self) -> bytes:
        return bytes(self)

    def wire_length(self) -> int:
        return len(self)
