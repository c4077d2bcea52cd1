"""
uploads.py — Stores multipart files in the temp folder before upload.

Routes call save_upload() for each expected file field and hand the
resulting local path to the Media Upload collaborator.
"""

from __future__ import annotations

import os
import uuid

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename


def save_upload(file: FileStorage | None, folder: str) -> str | None:
    """
    Writes `file` under `folder` and returns its path.

    Returns None when the field was absent or submitted without a file.
    A random prefix keeps concurrent uploads with the same name apart.
    """
    if file is None or not file.filename:
        return None

    os.makedirs(folder, exist_ok=True)
    filename = secure_filename(file.filename) or "upload"
    path = os.path.join(folder, f"{uuid.uuid4().hex}-{filename}")
    file.save(path)
    return path
