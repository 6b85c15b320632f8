"""
Local file loading for multi-file commits.

Binary files are detected by extension, not by content, and are sent
base64-encoded; everything else is read as UTF-8 text and sent verbatim.
"""

import asyncio
import base64
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from forgelink.models.commit import CommitAction, CommitFile
from forgelink.utils.logging import get_logger

logger = get_logger(__name__)

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico",
    ".pdf", ".zip", ".tar", ".gz",
    ".exe", ".bin",
    ".woff", ".woff2", ".ttf", ".eot",
})


def is_binary_file(file_path: str) -> bool:
    """
    Check if a file is binary based on its extension.

    Args:
        file_path: Path to file

    Returns:
        True if the extension is on the binary allow-list
    """
    lowered = file_path.lower()
    return any(lowered.endswith(ext) for ext in BINARY_EXTENSIONS)


def encode_content(file_path: str, content: Union[bytes, str]) -> Tuple[str, Optional[str]]:
    """
    Prepare file content for a JSON commit payload.

    Paths on the binary allow-list are base64-encoded whether the content
    arrives as bytes or str (str is taken as UTF-8). Other paths are sent as
    text; bytes content for them is decoded as UTF-8.

    Returns:
        Tuple of (content, encoding); encoding is "base64" for binary paths
        and None for text

    Raises:
        UnicodeDecodeError: If bytes content for a text path is not UTF-8
    """
    if is_binary_file(file_path):
        raw = content if isinstance(content, bytes) else content.encode("utf-8")
        return base64.b64encode(raw).decode("ascii"), "base64"
    if isinstance(content, bytes):
        return content.decode("utf-8"), None
    return content, None


def normalize_repo_path(file_path: str, repo_dir: Union[str, Path]) -> str:
    """
    Turn a user-supplied path into a path relative to the repository root.

    Relative paths are taken from ``repo_dir``; ``..`` segments are resolved
    before the containment check.

    Raises:
        ValueError: If the path points outside ``repo_dir``
    """
    root = Path(repo_dir).resolve()
    path = Path(file_path)
    if not path.is_absolute():
        path = root / path

    try:
        return path.resolve().relative_to(root).as_posix()
    except ValueError:
        raise ValueError(
            f"Path '{file_path}' must point inside the repository root {root}"
        ) from None


async def _read_file(repo_dir: Path, relative_path: str, action: CommitAction) -> CommitFile:
    full_path = repo_dir / relative_path
    if is_binary_file(relative_path):
        content: Union[bytes, str] = await asyncio.to_thread(full_path.read_bytes)
    else:
        content = await asyncio.to_thread(full_path.read_text, encoding="utf-8")
    logger.debug(f"Loaded {len(content)} bytes from {relative_path}")
    return CommitFile(path=relative_path, content=content, action=action)


async def load_commit_files(
    repo_dir: Union[str, Path],
    paths: Sequence[str],
    action: CommitAction = CommitAction.CREATE,
) -> List[CommitFile]:
    """
    Read local files concurrently and wrap them as commit changes.

    Args:
        repo_dir: Repository checkout root
        paths: File paths, relative to ``repo_dir`` or absolute inside it
        action: Commit action to apply to every file

    Returns:
        CommitFile list in the same order as ``paths``

    Raises:
        ValueError: If a path escapes the repository
        OSError: If a file cannot be read
    """
    root = Path(repo_dir)
    relative_paths = [normalize_repo_path(p, root) for p in paths]

    files = await asyncio.gather(
        *(_read_file(root, rel, action) for rel in relative_paths)
    )

    binary_count = sum(1 for f in files if is_binary_file(f.path))
    logger.info(f"Loaded {len(files)} files for commit ({binary_count} binary)")
    return list(files)


def deletion_changes(paths: Sequence[str], repo_dir: Union[str, Path]) -> List[CommitFile]:
    """Build delete actions for ``paths``."""
    return [
        CommitFile(path=normalize_repo_path(p, repo_dir), action=CommitAction.DELETE)
        for p in paths
    ]
