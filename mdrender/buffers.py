"""growable byte buffers used by the conversion pipeline."""

from typing import Optional

from mdrender.errors import AllocationError


class Buffer:
    """
    byte buffer whose capacity grows in multiples of a block unit.

    The unit is only a growth hint; any amount of data fits. release() frees
    the storage and may be called more than once, only the first call counts.
    """

    def __init__(self, unit: int) -> None:
        if unit <= 0:
            raise ValueError(f"buffer unit must be positive, got {unit}")
        self.unit = unit
        self._data: Optional[bytearray] = bytearray()
        self._capacity = 0
        self.release_count = 0

    def __enter__(self) -> "Buffer":
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.release()

    @property
    def released(self) -> bool:
        """true once the storage has been freed."""
        return self._data is None

    @property
    def size(self) -> int:
        """number of bytes currently held."""
        return len(self._storage())

    @property
    def capacity(self) -> int:
        """bytes reserved so far, always a multiple of unit."""
        return self._capacity

    @property
    def data(self) -> bytes:
        """immutable copy of the contents."""
        return bytes(self._storage())

    def grow(self, needed: int) -> None:
        """reserves capacity for at least `needed` bytes, in whole units."""
        self._storage()
        if needed > self._capacity:
            self._capacity = -(-needed // self.unit) * self.unit

    def put(self, data: bytes) -> None:
        """
        appends data, growing as needed.

        Raises:
            AllocationError: if the memory cannot be obtained
        """
        storage = self._storage()
        self.grow(len(storage) + len(data))
        try:
            storage.extend(data)
        except MemoryError as exc:
            raise AllocationError(
                f"cannot grow buffer to {len(storage) + len(data)} bytes"
            ) from exc

    def set(self, data: bytes) -> None:
        """replaces the contents with data."""
        self._storage().clear()
        self.put(data)

    def release(self) -> None:
        """frees the storage; later calls are no-ops."""
        if self._data is None:
            return
        self._data = None
        self._capacity = 0
        self.release_count += 1

    def _storage(self) -> bytearray:
        if self._data is None:
            raise ValueError("buffer already released")
        return self._data
