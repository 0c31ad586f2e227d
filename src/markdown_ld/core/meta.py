from typing import Any, Iterator, Mapping, Union

Scalar = Union[str, int, float, bool, None]
Value = Union[Scalar, tuple]


class Frontmatter(Mapping[str, Value]):
    """
    Read-only, insertion-ordered frontmatter keys, e.g.,
    - "title": "Covariant derivative"
    - "tags": ("math", "geometry")
    - "draft": False
    Values are scalars or tuples of scalars; nothing else survives parsing.
    """

    def __init__(self, initial: Mapping[str, Value] | None = None):
        self._d = dict(initial or {})

    def __getitem__(self, k: str) -> Value:
        return self._d[k]

    def __iter__(self) -> Iterator[str]:
        return iter(self._d)

    def __len__(self) -> int:
        return len(self._d)

    def __repr__(self) -> str:
        return f"Frontmatter({self._d!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Frontmatter):
            return self._d == other._d
        if isinstance(other, Mapping):
            return self._d == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(tuple(self._d.items()))

    # Convenience
    def get_str(self, key: str, default: str | None = None) -> str | None:
        v = self._d.get(key, default)
        return v if isinstance(v, str) else default

    def get_list(self, key: str) -> tuple:
        """Array values as-is; a lone scalar becomes a one-element tuple."""
        v = self._d.get(key)
        if v is None:
            return ()
        return v if isinstance(v, tuple) else (v,)

    def to_dict(self) -> dict[str, Any]:
        return {k: list(v) if isinstance(v, tuple) else v for k, v in self._d.items()}
