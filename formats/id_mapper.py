from typing import Dict, Generic, Iterator, List, Optional, TypeVar

T = TypeVar("T")


class IdMapper(Generic[T]):
    """
    Name-indexed store that hands out stable integer ids.

    Ids are positions in insertion order and always resolve to the value
    stored under them. Names resolve to the *most recent* insert: inserting a
    second value under an existing name re-points the name, while the first
    value stays reachable through its original id.
    """

    def __init__(self):
        self._values: List[T] = []
        self._mapping: Dict[str, int] = {}

    def insert(self, name: str, value: T) -> int:
        value_id = len(self._values)
        self._values.append(value)
        self._mapping[name] = value_id
        return value_id

    def get_by_id(self, value_id: int) -> T:
        return self._values[value_id]

    def get_id_by_name(self, name: str) -> Optional[int]:
        return self._mapping.get(name)

    def get_by_name(self, name: str) -> Optional[T]:
        # Returns the stored object itself, so callers may mutate it in place.
        value_id = self._mapping.get(name)
        if value_id is None:
            return None
        return self._values[value_id]

    def __contains__(self, name: str) -> bool:
        return name in self._mapping

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[T]:
        return iter(self._values)
