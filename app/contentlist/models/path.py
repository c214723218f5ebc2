"""Content path value object.

A ContentPath names a file or directory inside a manifest. It uses a
unix-like syntax that is independent of the host operating system:

- Segments are separated by '/' ('\\' is accepted on parse and normalized).
- A leading separator marks an absolute path, anything else is relative.
- '/' alone is the absolute root, the empty string is the relative root.
- '.' and '..' are "special links" (current and parent directory).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

SEPARATORS = ("/", "\\")
SPECIAL_LINKS = (".", "..")


def _check_segment(segment: str, index: int) -> None:
    """Validate a single path segment.

    Args:
        segment: Segment text.
        index: Position of the segment, used in error messages.

    Raises:
        ValueError: If the segment is empty or contains illegal characters.
    """
    if not isinstance(segment, str):
        msg = f"Segment at index {index} is not a string: {segment!r}"
        raise TypeError(msg)
    if not segment:
        msg = f"Segment at index {index} is empty"
        raise ValueError(msg)
    if "\0" in segment or "/" in segment or "\\" in segment:
        msg = f"Segment at index {index} contains illegal characters: {segment!r}"
        raise ValueError(msg)


@dataclass(frozen=True, slots=True, order=True)
class ContentPath:
    """Immutable path made of string segments.

    Equality and ordering compare ``(segments, absolute)`` and are
    case-sensitive. Use :meth:`casefold_key` for case-insensitive sorting.

    Attributes:
        segments: Ordered, non-empty path segments.
        absolute: True for absolute paths, False for relative ones.
    """

    segments: tuple[str, ...] = ()
    absolute: bool = True

    def __post_init__(self) -> None:
        """Validate segments after initialization."""
        if not isinstance(self.segments, tuple):
            object.__setattr__(self, "segments", tuple(self.segments))
        for index, segment in enumerate(self.segments):
            _check_segment(segment, index)

    @classmethod
    def of(cls, segments: list[str] | tuple[str, ...], absolute: bool = True) -> ContentPath:
        """Create a path from a sequence of segments.

        Args:
            segments: Path segments, each non-empty and free of separators.
            absolute: Whether the path is absolute.

        Returns:
            New ContentPath.

        Raises:
            ValueError: If any segment is invalid.
        """
        return cls(tuple(segments), absolute)

    @classmethod
    def root(cls, absolute: bool = True) -> ContentPath:
        """Return the absolute or relative root path."""
        return _ABSOLUTE_ROOT if absolute else _RELATIVE_ROOT

    @classmethod
    def parse(cls, text: str) -> ContentPath:
        """Parse a textual path.

        Examples:
            >>> str(ContentPath.parse("\\\\a\\\\b"))
            '/a/b'
            >>> ContentPath.parse("").is_root
            True

        Args:
            text: Path text. Both '/' and '\\' separate segments.

        Returns:
            Parsed ContentPath.

        Raises:
            ValueError: If the text contains a null character or an
                empty segment (two consecutive separators).
        """
        if not text:
            return _RELATIVE_ROOT
        if text in SEPARATORS:
            return _ABSOLUTE_ROOT

        null_index = text.find("\0")
        if null_index >= 0:
            msg = f"Path contains null character at index {null_index}"
            raise ValueError(msg)

        absolute = text[0] in SEPARATORS
        body = text[1:] if absolute else text
        body = body.replace("\\", "/")
        # A single trailing separator carries no meaning
        if body.endswith("/"):
            body = body[:-1]

        segments = body.split("/")
        for index, segment in enumerate(segments):
            if not segment:
                msg = f"Path contains empty segment at index {index}: {text!r}"
                raise ValueError(msg)
        return cls(tuple(segments), absolute)

    @property
    def name(self) -> str | None:
        """Last segment of the path, or None for a root path."""
        if not self.segments:
            return None
        return self.segments[-1]

    @property
    def is_root(self) -> bool:
        """True if the path has no segments."""
        return not self.segments

    @property
    def is_relative(self) -> bool:
        """True if the path is relative."""
        return not self.absolute

    @property
    def has_special_links(self) -> bool:
        """True if any segment is '.' or '..'."""
        return any(segment in SPECIAL_LINKS for segment in self.segments)

    @property
    def parent(self) -> ContentPath:
        """Parent path, or the matching root if there is at most one segment."""
        if len(self.segments) <= 1:
            return ContentPath.root(self.absolute)
        return ContentPath(self.segments[:-1], self.absolute)

    def resolve(self, other: ContentPath | str) -> ContentPath:
        """Concatenate another path onto this one.

        Absoluteness of the result follows this path only.

        Args:
            other: Path (or path text) to append.

        Returns:
            New ContentPath with the combined segments.
        """
        if isinstance(other, str):
            other = ContentPath.parse(other)
        return ContentPath(self.segments + other.segments, self.absolute)

    def rename(self, name: str) -> ContentPath:
        """Replace the last segment, or append one to a root path.

        Args:
            name: New last segment. Must not contain separators.

        Returns:
            Renamed path.

        Raises:
            ValueError: If the name is empty or contains separators.
        """
        _check_segment(name, len(self.segments))
        if self.is_root:
            return ContentPath((name,), self.absolute)
        return ContentPath((*self.segments[:-1], name), self.absolute)

    def relative_to(self, root: ContentPath) -> ContentPath | None:
        """Make this path relative to a root path.

        The absoluteness of either path is ignored; only segments are
        compared, case-sensitively.

        Args:
            root: Prefix to strip.

        Returns:
            The remaining segments as a relative path, or None if root
            is not a prefix of this path.
        """
        count = len(root.segments)
        if len(self.segments) < count or self.segments[:count] != root.segments:
            return None
        return ContentPath(self.segments[count:], absolute=False)

    def to_absolute(self) -> ContentPath:
        """Return the absolute variant of this path."""
        if self.absolute:
            return self
        return ContentPath(self.segments, True)

    def to_relative(self) -> ContentPath:
        """Return the relative variant of this path."""
        if not self.absolute:
            return self
        return ContentPath(self.segments, False)

    def resolve_to_native(self, anchor: Path) -> Path:
        """Resolve this path into a host path under an anchor directory.

        Args:
            anchor: Host directory the path is relative to.

        Returns:
            ``anchor`` itself for a root path, otherwise the anchor joined
            with every segment using the host separator.
        """
        if self.is_root:
            return anchor
        return anchor.joinpath(*self.segments)

    def casefold_key(self) -> tuple[tuple[str, ...], bool]:
        """Case-insensitive sort key; never used for equality."""
        return tuple(segment.lower() for segment in self.segments), self.absolute

    def __str__(self) -> str:
        joined = "/".join(self.segments)
        if self.absolute:
            return "/" + joined
        return joined


_ABSOLUTE_ROOT = ContentPath((), True)
_RELATIVE_ROOT = ContentPath((), False)
