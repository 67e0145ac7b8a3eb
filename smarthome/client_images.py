"""Client-side avatar images: rounded rendering and per-user local storage."""

from __future__ import annotations

import logging
import os
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable

from PIL import Image, ImageChops, ImageDraw

log = logging.getLogger(__name__)

_EXECUTOR = ThreadPoolExecutor(thread_name_prefix="client-avatars")


def rounded_image(
    image: Image.Image | None, size: tuple[int, int], radius: int
) -> Image.Image | None:
    """Scale ``image`` to cover ``size`` and clip it to a rounded rectangle.

    The scaled image is anchored at the top-left corner; anything outside
    ``size`` is cut off. Returns ``None`` when ``image`` is ``None``.
    """
    if image is None:
        log.debug("rounded_image got no image")
        return None
    width, height = size
    if width <= 0 or height <= 0:
        raise ValueError(f"invalid size {size!r}")
    source = image.convert("RGBA")
    scale = max(width / source.width, height / source.height)
    scaled_size = (max(1, round(source.width * scale)), max(1, round(source.height * scale)))
    scaled = source.resize(scaled_size, Image.Resampling.LANCZOS)

    canvas = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    canvas.paste(scaled.crop((0, 0, width, height)), (0, 0))

    mask = Image.new("L", (width, height), 0)
    draw = ImageDraw.Draw(mask)
    box = (0, 0, width - 1, height - 1)
    if radius > 0:
        draw.rounded_rectangle(box, radius=radius, fill=255)
    else:
        draw.rectangle(box, fill=255)
    canvas.putalpha(ImageChops.multiply(canvas.getchannel("A"), mask))
    return canvas


def circular_image(image: Image.Image | None, size: tuple[int, int]) -> Image.Image | None:
    """Like :func:`rounded_image` with the radius set to half the shorter side."""
    return rounded_image(image, size, min(size) // 2)


def _open_image(path: str | os.PathLike[str]) -> Image.Image | None:
    try:
        with Image.open(path) as opened:
            opened.load()
            return opened.copy()
    except (OSError, ValueError):
        return None


class ClientAvatarStore:
    """Avatars of the logged-in user's contacts.

    Files live in ``<root>/avatars/<login user>/user_avatar/<id>.png``.
    Work runs in a background thread; each method returns a future, and the
    callback runs in that thread before the future completes.
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        default_avatar: str | os.PathLike[str] | None = None,
    ) -> None:
        self._root = Path(root)
        self._default_avatar = Path(default_avatar) if default_avatar is not None else None
        self._login_user = ""

    def set_login_user(self, user_id: str) -> None:
        self._login_user = user_id

    def folder(self) -> Path:
        """The current user's avatar folder, created if needed."""
        path = self._root / "avatars" / self._login_user / "user_avatar"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _avatar_path(self, avatar_id: str) -> Path:
        return self.folder() / f"{avatar_id}.png"

    def _run_save(self, task: Callable[[], bool], callback: Callable[[], Any] | None) -> Future:
        def run() -> bool:
            ok = task()
            if ok and callback is not None:
                callback()
            return ok

        return _EXECUTOR.submit(run)

    def save_from_path(
        self, source_path: str | os.PathLike[str], avatar_id: str, callback=None
    ) -> Future:
        """Load the image at ``source_path`` and store it as PNG."""

        def task() -> bool:
            image = _open_image(source_path)
            if image is None:
                log.warning("failed to load avatar from %s", source_path)
                return False
            return self._write_image(image, avatar_id)

        return self._run_save(task, callback)

    def save_image(self, image: Image.Image | None, avatar_id: str, callback=None) -> Future:
        """Store ``image`` as PNG."""

        def task() -> bool:
            if image is None:
                log.warning("image is missing, cannot save")
                return False
            return self._write_image(image, avatar_id)

        return self._run_save(task, callback)

    def save_bytes(self, data: bytes, avatar_id: str, callback=None) -> Future:
        """Write ``data`` unchanged as the avatar file."""
        payload = bytes(data)

        def task() -> bool:
            target = self._avatar_path(avatar_id)
            try:
                target.write_bytes(payload)
            except OSError:
                log.warning("cannot save file %s", target)
                return False
            return True

        return self._run_save(task, callback)

    def _write_image(self, image: Image.Image, avatar_id: str) -> bool:
        try:
            image.save(self._avatar_path(avatar_id), format="PNG")
        except (OSError, ValueError):
            log.warning("failed to save avatar %s", avatar_id)
            return False
        return True

    def _load_default(self) -> Image.Image | None:
        if self._default_avatar is None:
            return None
        image = _open_image(self._default_avatar)
        if image is None:
            log.debug("default avatar %s cannot be loaded", self._default_avatar)
        return image

    def load_from_file(
        self, path: str | os.PathLike[str], callback: Callable[[Image.Image | None], Any]
    ) -> Future:
        """Load ``path``, or the default avatar if it does not exist.

        An existing but unreadable file yields ``None``.
        """

        def run() -> Image.Image | None:
            if Path(path).exists():
                image = _open_image(path)
                if image is None:
                    log.debug("failed to load image %s", path)
            else:
                image = self._load_default()
            if callback is not None:
                callback(image)
            return image

        return _EXECUTOR.submit(run)

    def get_user_avatar(
        self, user_id: str, callback: Callable[[Image.Image | None], Any]
    ) -> Future:
        """Load the stored avatar of ``user_id``, falling back to the default."""
        path = self.folder() / f"{user_id}.png"

        def deliver(image: Image.Image | None) -> None:
            callback(image if image is not None else self._load_default())

        return self.load_from_file(path, deliver)