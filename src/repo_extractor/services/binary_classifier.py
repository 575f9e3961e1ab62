"""Binary classification. Decides which paths are listed and which are fetched as text."""

from __future__ import annotations

BINARY_EXTENSIONS: frozenset[str] = frozenset(
    {
        # Images
        ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".tif", ".tiff",
        ".svg", ".psd", ".heic", ".avif",
        # Audio / video
        ".mp3", ".mp4", ".wav", ".avi", ".mov", ".wmv", ".flv", ".ogg", ".flac",
        ".m4a", ".mkv", ".webm",
        # Documents
        ".pdf", ".doc", ".docx", ".ppt", ".pptx", ".xls", ".xlsx", ".odt",
        # Archives
        ".zip", ".rar", ".7z", ".tar", ".gz", ".tgz", ".bz2", ".xz", ".zst",
        ".jar", ".war",
        # Executables / compiled objects
        ".exe", ".dll", ".so", ".dylib", ".bin", ".o", ".a", ".lib", ".class",
        ".pyc", ".pyd", ".pyo", ".wasm",
        # Fonts
        ".woff", ".woff2", ".ttf", ".eot", ".otf",
        # Data blobs
        ".dat", ".db", ".sqlite", ".sqlite3",
    }
)

EXCLUDED_DIRS: frozenset[str] = frozenset({".git"})


def _filename(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", maxsplit=1)[-1]


def extension(path: str) -> str:
    """Return the lower-cased text after the last ``.`` of the file name, dot included."""
    name = _filename(path)
    dot = name.rfind(".")
    return name[dot:].lower() if dot != -1 else ""


def is_binary(path: str) -> bool:
    """Return *True* if *path* should be treated as a binary file."""
    return extension(path) in BINARY_EXTENSIONS


def is_excluded(path: str) -> bool:
    """Return *True* if any segment of *path* is a version-control metadata directory."""
    return any(part in EXCLUDED_DIRS for part in path.replace("\\", "/").split("/"))


def should_list(path: str, *, include_binaries: bool = True) -> bool:
    """Shared inclusion rule applied by every discovery strategy."""
    if not path or is_excluded(path):
        return False
    if not include_binaries and is_binary(path):
        return False
    return True
