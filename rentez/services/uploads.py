# rentez/services/uploads.py
from __future__ import annotations

import os
import uuid
from pathlib import Path

from fastapi import HTTPException, UploadFile

from ..config import settings

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp", ".pdf"}
PUBLIC_PREFIX = "/uploads"
CHUNK = 1024 * 64


def uploads_root() -> Path:
    root = Path(settings.uploads_dir).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


def save_upload(file: UploadFile, *, prefix: str) -> str:
    """Stores an upload under the uploads dir and returns its public /uploads path."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="Please upload a file")

    ext = os.path.splitext(file.filename)[1].lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(status_code=400, detail=f"Unsupported file type '{ext or 'none'}'")

    name = f"{prefix}-{uuid.uuid4().hex}{ext}"
    dest = uploads_root() / name

    written = 0
    with dest.open("wb") as out:
        while True:
            chunk = file.file.read(CHUNK)
            if not chunk:
                break
            written += len(chunk)
            if written > settings.max_upload_bytes:
                out.close()
                dest.unlink(missing_ok=True)
                raise HTTPException(status_code=400, detail="File too large")
            out.write(chunk)

    return f"{PUBLIC_PREFIX}/{name}"
