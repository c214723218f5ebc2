"""In-memory filesystem reconstructed from manifest entries.

Entries can arrive in any order. Missing intermediate directories are
created as placeholder nodes (directory nodes without an Entry) and are
filled in if their own Entry shows up later.

Nodes live in a flat list and refer to each other by index; the root is
index 0 and is its own parent. The special links ``.`` and ``..`` are
resolved while walking a path and never stored as children.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from contentlist.core.cancel import CancelToken, check_cancelled
from contentlist.models.entry import Entry, EntryType
from contentlist.models.path import ContentPath

logger = logging.getLogger(__name__)

ROOT = 0

_CURRENT = "."
_PARENT = ".."


@dataclass(slots=True)
class _Node:
    name: str
    parent: int
    directory: bool
    entry: Entry | None = None
    children: dict[str, int] = field(default_factory=dict)


def _require_absolute(path: ContentPath) -> None:
    if path.is_relative:
        msg = f"Path is relative: {path}"
        raise ValueError(msg)


def _as_path(path: ContentPath | str) -> ContentPath:
    if isinstance(path, str):
        path = ContentPath.parse(path)
    _require_absolute(path)
    return path


class VirtualFileSystem:
    """Navigable tree built from a flat sequence of entries.

    Every lookup takes an absolute ContentPath (or its text form) and
    raises ValueError for relative paths.

    Example:
        >>> vfs = VirtualFileSystem.from_entries(reader)
        >>> vfs.list_files("/photos")
        [ContentPath(segments=('photos', '2024'), absolute=True), ...]
    """

    def __init__(self) -> None:
        self._nodes: list[_Node] = [_Node(name="", parent=ROOT, directory=True)]

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Entry],
        cancel: CancelToken | None = None,
    ) -> VirtualFileSystem:
        """Build a filesystem from entries.

        Args:
            entries: Entries in any order.
            cancel: Optional cancellation token, polled per entry.

        Returns:
            The populated VirtualFileSystem.
        """
        vfs = cls()
        for entry in entries:
            check_cancelled(cancel)
            vfs.add_entry(entry)
        return vfs

    def __len__(self) -> int:
        return len(self._nodes) - 1

    def _new_node(self, name: str, parent: int, directory: bool, entry: Entry | None) -> int:
        index = len(self._nodes)
        self._nodes.append(_Node(name=name, parent=parent, directory=directory, entry=entry))
        self._nodes[parent].children[name] = index
        return index

    def add_entry(self, entry: Entry) -> bool:
        """Insert an entry.

        Placeholder directories are created for missing ancestors. The
        entry is dropped if an ancestor is a file, or if its node already
        holds an Entry or has the other directory flag.

        Args:
            entry: Entry to insert.

        Returns:
            True if the entry was stored, False if it was dropped.
        """
        segments = entry.path.segments
        current = ROOT

        for name in segments[:-1]:
            child = self._nodes[current].children.get(name)
            if child is None:
                child = self._new_node(name, current, True, None)
            elif not self._nodes[child].directory:
                logger.debug("Dropping %s: %s is a file", entry.path, self._real_path(child))
                return False
            current = child

        if segments:
            index = self._nodes[current].children.get(segments[-1])
            if index is None:
                self._new_node(segments[-1], current, entry.is_directory, entry)
                return True
        else:
            index = ROOT

        node = self._nodes[index]
        if node.entry is None and node.directory == entry.is_directory:
            node.entry = entry
            return True

        logger.debug("Dropping %s: conflicts with an existing node", entry.path)
        return False

    def _resolve(self, path: ContentPath | str) -> int | None:
        path = _as_path(path)
        current = ROOT
        for name in path.segments:
            node = self._nodes[current]
            if not node.directory:
                return None
            if name == _CURRENT:
                continue
            if name == _PARENT:
                current = node.parent
                continue
            child = node.children.get(name)
            if child is None:
                return None
            current = child
        return current

    def _real_path(self, index: int) -> ContentPath:
        names: list[str] = []
        while index != ROOT:
            node = self._nodes[index]
            names.append(node.name)
            index = node.parent
        names.reverse()
        return ContentPath.of(names)

    def exists(self, path: ContentPath | str) -> bool:
        """Check if a path exists."""
        return self._resolve(path) is not None

    def is_directory(self, path: ContentPath | str) -> bool:
        """Check if a path is a directory (False if it does not exist)."""
        index = self._resolve(path)
        return index is not None and self._nodes[index].directory

    def is_file(self, path: ContentPath | str) -> bool:
        """Check if a path is a non-directory node (False if it does not exist)."""
        index = self._resolve(path)
        return index is not None and not self._nodes[index].directory

    def to_real_path(self, path: ContentPath | str) -> ContentPath | None:
        """Resolve special links.

        Returns:
            The canonical path of the node, or None if it does not exist.
        """
        index = self._resolve(path)
        if index is None:
            return None
        return self._real_path(index)

    def list_files(
        self,
        path: ContentPath | str,
        include_special_links: bool = False,
    ) -> list[ContentPath] | None:
        """List the children of a directory.

        Args:
            path: Directory to list.
            include_special_links: Also return ``.`` and ``..`` first.

        Returns:
            Child paths in insertion order, or None if the path does not
            exist or is not a directory.
        """
        index = self._resolve(path)
        if index is None or not self._nodes[index].directory:
            return None

        real = self._real_path(index)
        names = list(self._nodes[index].children)
        if include_special_links:
            names = [_CURRENT, _PARENT, *names]
        return [ContentPath.of((*real.segments, name)) for name in names]

    def list_entries(self, paths: Iterable[ContentPath | str]) -> list[Entry]:
        """Expand paths into their entries and all descendant entries.

        Each node is visited once even if several given paths overlap.
        Nodes without an Entry are skipped but still descended into.

        Args:
            paths: Paths to expand; missing ones are ignored.

        Returns:
            Entries in depth-first pre-order.
        """
        result: list[Entry] = []
        visited: set[int] = set()
        for path in paths:
            index = self._resolve(path)
            if index is not None:
                self._collect(index, result, visited)
        return result

    def _collect(self, index: int, result: list[Entry], visited: set[int]) -> None:
        if index in visited:
            return
        visited.add(index)
        node = self._nodes[index]
        if node.entry is not None:
            result.append(node.entry)
        for child in node.children.values():
            self._collect(child, result, visited)

    def search(
        self,
        path: ContentPath | str,
        text: str,
        case_sensitive: bool = False,
        exact_match: bool = False,
        sort: bool = False,
        cancel: CancelToken | None = None,
    ) -> list[ContentPath] | None:
        """Find nodes below ``path`` whose name matches ``text``.

        The starting directory itself is not a candidate.

        Args:
            path: Directory to search in.
            text: Substring (or exact name) to look for.
            case_sensitive: Compare names case-sensitively.
            exact_match: Require the whole name to match.
            sort: Return directories first, each group sorted by name
                case-insensitively.
            cancel: Optional cancellation token, polled per node.

        Returns:
            Matching paths (depth-first order unless sorted), or None if
            the path does not exist or is not a directory.
        """
        index = self._resolve(path)
        if index is None or not self._nodes[index].directory:
            return None

        needle = text if case_sensitive else text.casefold()
        matches: list[int] = []
        for child in self._nodes[index].children.values():
            self._search(child, needle, case_sensitive, exact_match, matches, cancel)

        if sort:
            directories = [i for i in matches if self._nodes[i].directory]
            files = [i for i in matches if not self._nodes[i].directory]
            directories.sort(key=lambda i: self._nodes[i].name.casefold())
            files.sort(key=lambda i: self._nodes[i].name.casefold())
            matches = directories + files

        return [self._real_path(i) for i in matches]

    def _search(
        self,
        index: int,
        needle: str,
        case_sensitive: bool,
        exact_match: bool,
        matches: list[int],
        cancel: CancelToken | None,
    ) -> None:
        check_cancelled(cancel)
        node = self._nodes[index]
        name = node.name if case_sensitive else node.name.casefold()
        if (exact_match and name == needle) or (not exact_match and needle in name):
            matches.append(index)
        for child in node.children.values():
            self._search(child, needle, case_sensitive, exact_match, matches, cancel)

    def get_entry(self, path: ContentPath | str) -> Entry | None:
        """Get the Entry stored for a path (None for placeholders or missing paths)."""
        index = self._resolve(path)
        if index is None:
            return None
        return self._nodes[index].entry

    def walk(self, path: ContentPath | str = "/") -> Iterator[ContentPath]:
        """Yield the real paths of a subtree in depth-first pre-order."""
        index = self._resolve(path)
        if index is None:
            return
        stack = [index]
        while stack:
            current = stack.pop()
            yield self._real_path(current)
            stack.extend(reversed(self._nodes[current].children.values()))

    def recompute(self) -> None:
        """Fill placeholders and recompute directory aggregates.

        Placeholder directories receive a synthesized Directory entry.
        Every directory's ``size``, ``files`` and ``directories`` are
        recomputed bottom-up from its children.
        """
        entries = [self._filled_entry(index) for index in range(len(self._nodes))]

        # Children always have a higher index than their parent
        for index in range(len(self._nodes) - 1, -1, -1):
            node = self._nodes[index]
            entry = entries[index]
            if not node.directory:
                entry.files = 0
                entry.directories = 0
                continue

            size = files = directories = 0
            for child in node.children.values():
                child_entry = entries[child]
                size += child_entry.size
                if self._nodes[child].directory:
                    directories += 1 + child_entry.directories
                    files += child_entry.files
                else:
                    files += 1
            entry.size = size
            entry.files = files
            entry.directories = directories

    def _filled_entry(self, index: int) -> Entry:
        """Return the entry of a node, synthesizing one for placeholders."""
        node = self._nodes[index]
        if node.entry is None:
            entry_type = EntryType.DIRECTORY if node.directory else EntryType.FILE
            node.entry = Entry(path=self._real_path(index), type=entry_type)
        return node.entry
