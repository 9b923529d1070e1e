"""
Resource backends

The pipeline reads source resources, writes compiled pages and creates
incidental resources (extracted stylesheets) through a backend. Two
implementations ship with pagesmith:

    FileSystemBackend - source directory in, destination directory out
    MemoryBackend     - dictionaries in and out, for embedding and tests
"""

import posixpath
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

import xxhash

from ..models.fragment import ResourceType
from .errors import ResourceNotFound
from .log import LOG


@runtime_checkable
class ResourceBackend(Protocol):
    """
    Protocol for pipeline backends.

    A backend may additionally implement
    ``createdResource_relink(kind, text, source_path, original_path) -> str``
    when identical created content must live at different paths depending
    on its source.
    """

    def resource_get(self, kind: ResourceType, res_path: str) -> str:
        """Read a source resource. Raises ResourceNotFound if absent."""
        ...

    def resource_write(self, kind: ResourceType, res_path: str, text: str) -> None:
        """Persist a compiled resource."""
        ...

    def resource_create(self, kind: ResourceType, text: str, source_path: str) -> str:
        """Materialize an incidental resource and return its path."""
        ...


class FileSystemBackend:
    """
    Backend reading from ``source_dir`` and writing to ``dest_dir``.

    Created resources are named after a hash of their content and placed
    next to the resource that produced them.

    Example:
        >>> backend = FileSystemBackend(Path('site'), Path('public'))
        >>> backend.resource_get(ResourceType.HTML, 'index.html')
    """

    def __init__(self, source_dir: Path, dest_dir: Path) -> None:
        self.source_dir = Path(source_dir)
        self.dest_dir = Path(dest_dir)

    def resource_get(self, kind: ResourceType, res_path: str) -> str:
        path = self.source_dir / res_path
        if not path.is_file():
            raise ResourceNotFound(res_path, kind.value)
        LOG(f"Reading {path}", level=3)
        return path.read_text(encoding='utf-8')

    def resource_write(self, kind: ResourceType, res_path: str, text: str) -> None:
        path = self.dest_dir / res_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding='utf-8')
        LOG(f"Wrote {path}", level=2)

    def resource_create(self, kind: ResourceType, text: str, source_path: str) -> str:
        res_path = self.createdPath_make(kind, text, source_path)
        self.resource_write(kind, res_path, text)
        return res_path

    def createdResource_relink(self, kind: ResourceType, text: str, source_path: str, original_path: str) -> str:
        """
        Reuse ``original_path`` when it sits in the directory of ``source_path``,
        otherwise write a copy there so relative references keep working.
        """
        if posixpath.dirname(source_path) == posixpath.dirname(original_path):
            return original_path
        return self.resource_create(kind, text, source_path)

    def createdPath_make(self, kind: ResourceType, text: str, source_path: str) -> str:
        digest = xxhash.xxh64_hexdigest(text.encode('utf-8'))
        return posixpath.join(posixpath.dirname(source_path), f"_{digest}.{kind.extension}")


class MemoryBackend:
    """
    Dictionary-backed backend.

    Attributes:
        sources: Resource path -> source text
        written: Resource path -> written text
        created: (kind, text, source_path, created_path) per resource_create call
    """

    def __init__(self, sources: Optional[Dict[str, str]] = None) -> None:
        self.sources: Dict[str, str] = dict(sources or {})
        self.written: Dict[str, str] = {}
        self.created: List[Tuple[ResourceType, str, str, str]] = []

    def resource_get(self, kind: ResourceType, res_path: str) -> str:
        if res_path not in self.sources:
            raise ResourceNotFound(res_path, kind.value)
        return self.sources[res_path]

    def resource_write(self, kind: ResourceType, res_path: str, text: str) -> None:
        self.written[res_path] = text

    def resource_create(self, kind: ResourceType, text: str, source_path: str) -> str:
        res_path = f"resource{len(self.created)}.{kind.extension}"
        self.created.append((kind, text, source_path, res_path))
        self.written[res_path] = text
        return res_path


def resPath_resolve(base_path: str, src: str) -> str:
    """
    Resolve a reference found inside ``base_path``.

    Paths starting with ``/`` are relative to the source root; anything
    else is relative to the directory of ``base_path``.

    Example:
        >>> resPath_resolve('pages/index.html', '../parts/header.html')
        'parts/header.html'
        >>> resPath_resolve('pages/index.html', '/parts/header.html')
        'parts/header.html'
    """
    src = src.strip()
    if src.startswith('/'):
        joined = src.lstrip('/')
    else:
        joined = posixpath.join(posixpath.dirname(base_path), src)
    return posixpath.normpath(joined)
