"""Server-side storage of user and group avatar images."""

from __future__ import annotations

import io
import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable

from PIL import Image

log = logging.getLogger(__name__)

_EXECUTOR = ThreadPoolExecutor(thread_name_prefix="avatar-store")


def _ensure(folder: Path) -> Path:
    folder.mkdir(parents=True, exist_ok=True)
    return folder


class AvatarStore:
    """Avatars kept as ``<root>/avatars/user_avatar/<id>.png``.

    Saving runs in a background thread and returns a future holding whether
    it succeeded; ``callback`` is called only on success.
    """

    def __init__(
        self, root: str | os.PathLike[str], default_image: str | os.PathLike[str] | None = None
    ) -> None:
        self._root = Path(root)
        self._default_image = Path(default_image) if default_image is not None else None

    def user_folder(self) -> Path:
        return _ensure(self._root / "avatars" / "user_avatar")

    def group_folder(self) -> Path:
        return _ensure(self._root / "avatars" / "group_avatar")

    def _avatar_path(self, avatar_id: str) -> Path:
        return self.user_folder() / f"{avatar_id}.png"

    def _submit(self, task: Callable[..., bool], callback, *args) -> Future:
        future = _EXECUTOR.submit(task, *args)
        if callback is not None:

            def _done(finished: Future) -> None:
                if not finished.cancelled() and finished.exception() is None and finished.result():
                    callback()

            future.add_done_callback(_done)
        return future

    def save_from_path(
        self, source_path: str | os.PathLike[str], avatar_id: str, callback=None
    ) -> Future:
        """Load the image at ``source_path`` and store it as PNG."""
        return self._submit(self._save_from_path, callback, source_path, avatar_id)

    def save_image(self, image: Image.Image | None, avatar_id: str, callback=None) -> Future:
        """Store ``image`` as PNG."""
        return self._submit(self._save_image, callback, image, avatar_id)

    def save_bytes(self, data: bytes, avatar_id: str, callback=None) -> Future:
        """Write ``data`` unchanged as the avatar file."""
        return self._submit(self._save_bytes, callback, bytes(data), avatar_id)

    def _save_from_path(self, source_path, avatar_id: str) -> bool:
        try:
            with Image.open(source_path) as image:
                image.load()
                image.save(self._avatar_path(avatar_id), format="PNG")
        except (OSError, ValueError):
            log.warning("failed to load avatar from %s", source_path)
            return False
        return True

    def _save_image(self, image: Image.Image | None, avatar_id: str) -> bool:
        if image is None:
            log.warning("image is missing, cannot save")
            return False
        try:
            image.save(self._avatar_path(avatar_id), format="PNG")
        except (OSError, ValueError):
            log.warning("failed to save avatar %s", avatar_id)
            return False
        return True

    def _save_bytes(self, data: bytes, avatar_id: str) -> bool:
        target = self._avatar_path(avatar_id)
        try:
            target.write_bytes(data)
        except OSError:
            log.warning("cannot save file %s", target)
            return False
        return True

    def _default_png(self) -> bytes:
        if self._default_image is None:
            return b""
        try:
            with Image.open(self._default_image) as image:
                buffer = io.BytesIO()
                image.save(buffer, format="PNG")
        except (OSError, ValueError):
            log.warning("default avatar %s cannot be loaded", self._default_image)
            return b""
        return buffer.getvalue()

    def load_image(self, avatar_id: str) -> bytes:
        """The stored avatar bytes; the default image as PNG if there is none.

        An unreadable or empty file yields ``b""``.
        """
        path = self._avatar_path(avatar_id)
        if not path.exists():
            log.debug("file does not exist: %s", path)
            return self._default_png()
        try:
            data = path.read_bytes()
        except OSError:
            log.debug("could not open the file %s", path)
            return b""
        if not data:
            log.debug("file is empty: %s", path)
        return data