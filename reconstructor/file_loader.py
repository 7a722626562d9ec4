# reconstructor/file_loader.py
from __future__ import annotations

import inspect
import os
from pathlib import Path
from typing import Any, Optional

from reconstructor.entities import FileRole, SourceFile
from reconstructor.errors import ReadError


def _decode(raw: Any) -> str:
    if isinstance(raw, str):
        return raw
    # utf-8-sig drops a leading BOM, which editors on Windows like to add
    return bytes(raw).decode("utf-8-sig")


async def read_file_content(source: Any) -> str:
    """
    Full text of an uploaded file.

    `source` may be a FastAPI UploadFile (async read), any object with a sync
    read(), or a filesystem path. Every failure surfaces as ReadError.
    """
    try:
        if isinstance(source, (str, os.PathLike)):
            return _decode(Path(source).read_bytes())

        raw = source.read()
        if inspect.isawaitable(raw):
            raw = await raw
        return _decode(raw)
    except ReadError:
        raise
    except (OSError, UnicodeDecodeError, AttributeError, TypeError, ValueError) as e:
        name = getattr(source, "filename", None) or getattr(source, "name", None) or str(source)
        raise ReadError(f"Datei '{name}' konnte nicht gelesen werden: {e}") from e


def describe_source(role: FileRole, source: Any, content: Optional[str] = None) -> SourceFile:
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        name = path.name
        size = path.stat().st_size if path.exists() else 0
    else:
        name = getattr(source, "filename", None) or getattr(source, "name", None) or role.value
        size = getattr(source, "size", None)
        if size is None:
            size = len(content.encode("utf-8")) if content is not None else 0
    return SourceFile(role=role, name=str(name), size=int(size))
