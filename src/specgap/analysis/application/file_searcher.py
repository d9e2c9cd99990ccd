"""
File Searcher - locates implementation and test files by name.

Directory walks are blocking, so they run in the default executor and the
event loop stays free. Results are sorted for stable output.
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from specgap.shared.domain.exceptions import GapDetectionError
from specgap.shared.infrastructure.logging import get_logger
from specgap.shared.utils.file_io import is_file_async

logger = get_logger(__name__)

DEFAULT_EXCLUDE_DIRS = frozenset(
    {
        ".git",
        "node_modules",
        "__pycache__",
        ".venv",
        "venv",
        "build",
        "dist",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
    }
)
TEST_DIR_NAMES = ("tests", "test", "__tests__")
DEFAULT_MAX_DEPTH = 15


def is_test_file(path: str | Path) -> bool:
    """``test_*``, ``*_test``, ``*.test.*``, ``*.spec.*`` and ``conftest``."""
    name = Path(path).name.lower()
    stem = name.split(".", 1)[0]
    return (
        stem.startswith("test_")
        or stem.endswith("_test")
        or stem == "conftest"
        or ".test." in name
        or ".spec." in name
    )


def candidate_test_stems(implementation_stem: str) -> set[str]:
    return {
        f"test_{implementation_stem}",
        f"{implementation_stem}_test",
        f"{implementation_stem}.test",
        f"{implementation_stem}.spec",
    }


class FileSearcher:
    """
    Name-based file search under a source root.

    Args:
        extensions: Source extensions considered at all
        exclude_dirs: Directory names never descended into
        include_tests: Default for returning test files from name searches
        max_depth: Deepest directory level walked below the root
    """

    def __init__(
        self,
        extensions: tuple[str, ...] | list[str] = (".py",),
        exclude_dirs: frozenset[str] | set[str] | None = None,
        include_tests: bool = False,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ):
        self.extensions = tuple(ext.lower() for ext in extensions)
        self.exclude_dirs = frozenset(exclude_dirs) if exclude_dirs is not None else DEFAULT_EXCLUDE_DIRS
        self.include_tests = include_tests
        self.max_depth = max_depth
        self._walk_cache: dict[str, list[str]] = {}

    async def list_files(self, root: str | Path) -> list[str]:
        """
        Every file under root with an allowed extension (tests included).

        Raises:
            GapDetectionError: root is not a directory
        """
        root_path = Path(root)
        key = str(root_path)
        if key in self._walk_cache:
            return self._walk_cache[key]

        if not root_path.is_dir():
            raise GapDetectionError("enumerate_project", f"{root_path} is not a directory")

        loop = asyncio.get_running_loop()
        files = await loop.run_in_executor(None, self._walk, root_path)
        self._walk_cache[key] = files
        logger.debug("source_tree_listed", root=key, files=len(files))
        return files

    def _walk(self, root: Path) -> list[str]:
        found: list[str] = []
        root_depth = len(root.parts)

        def on_error(error: OSError) -> None:
            logger.warning("directory_unreadable", path=error.filename, error=error.strerror)

        for directory, dirnames, filenames in os.walk(root, onerror=on_error, followlinks=False):
            depth = len(Path(directory).parts) - root_depth
            if depth >= self.max_depth:
                dirnames[:] = []
            dirnames[:] = [d for d in dirnames if d not in self.exclude_dirs]
            for filename in filenames:
                if Path(filename).suffix.lower() in self.extensions:
                    found.append(os.path.join(directory, filename))
        return sorted(found)

    async def search_by_name(
        self,
        root: str | Path,
        keyword: str,
        include_tests: bool | None = None,
    ) -> list[str]:
        """Files whose basename (extension stripped) contains keyword, case-insensitively."""
        with_tests = self.include_tests if include_tests is None else include_tests
        needle = keyword.lower()
        matches = []
        for path in await self.list_files(root):
            if not with_tests and is_test_file(path):
                continue
            if needle in Path(path).stem.lower():
                matches.append(path)
        return matches

    async def find_test_files(self, implementation_path: str | Path, root: str | Path) -> list[str]:
        """
        Test files for an implementation file.

        Looks next to the file, in tests/test/__tests__ beside it or beside
        its parent, and anywhere under ``<root>/tests`` or ``<root>/test``.
        """
        implementation = Path(implementation_path)
        stems = candidate_test_stems(implementation.stem)
        parent = implementation.parent

        directories = [parent]
        directories.extend(parent / name for name in TEST_DIR_NAMES)
        directories.extend(parent.parent / name for name in TEST_DIR_NAMES[:2])

        found: set[str] = set()
        for directory in directories:
            for stem in stems:
                for extension in self.extensions:
                    candidate = directory / f"{stem}{extension}"
                    if await self.file_exists(candidate):
                        found.add(str(candidate))

        for name in TEST_DIR_NAMES[:2]:
            test_root = Path(root) / name
            if not test_root.is_dir():
                continue
            for path in await self.list_files(test_root):
                if Path(path).name.rsplit(".", 1)[0] in stems:
                    found.add(path)

        return sorted(found)

    async def file_exists(self, path: str | Path) -> bool:
        return await is_file_async(path)
