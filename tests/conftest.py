import io
import os
import zipfile

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import cv2
import numpy as np
import pytest
from PySide6 import QtWidgets


@pytest.fixture(scope="session")
def qapp():
    app = QtWidgets.QApplication.instance() or QtWidgets.QApplication([])
    yield app


def _encode(width: int, height: int, ext: str) -> bytes:
    img = np.full((height, width, 3), 255, dtype=np.uint8)
    cv2.rectangle(img, (0, 0), (width // 2, height // 2), (0, 0, 0), -1)
    ok, buf = cv2.imencode(ext, img)
    assert ok
    return buf.tobytes()


@pytest.fixture
def make_png():
    """Factory returning PNG bytes of the requested size."""

    def factory(width: int = 40, height: int = 30) -> bytes:
        return _encode(width, height, ".png")

    return factory


@pytest.fixture
def make_zip():
    """Factory returning zip bytes holding the given name -> data entries."""

    def factory(entries: dict) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, data in entries.items():
                zf.writestr(name, data)
        return buffer.getvalue()

    return factory


@pytest.fixture
def comic_archive(tmp_path, make_png, make_zip):
    """A .cbz on disk with three pages stored out of natural order plus junk entries."""
    data = make_zip(
        {
            "p1.png": make_png(),
            "p10.png": make_png(50, 30),
            "p2.png": make_png(60, 30),
            "notes.txt": b"not a page",
            "__MACOSX/._p1.png": b"resource fork",
        }
    )
    path = tmp_path / "chapter.cbz"
    path.write_bytes(data)
    return path
