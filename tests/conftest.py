import io
import os
import sys
from pathlib import Path

import numpy as np
import pytest
from fastapi.testclient import TestClient
from PIL import Image

# Ensure project root is on sys.path so 'imgforge' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("SUPABASE_STORAGE_LOCAL_DIR", ".local_storage")


def make_image_bytes(w=4, h=4, color=(128, 64, 32), fmt="PNG", mode="RGB") -> bytes:
    channels = len(mode)
    arr = np.zeros((h, w, channels), dtype=np.uint8)
    arr[:, :] = color[:channels]
    img = Image.fromarray(arr)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


def make_gradient_bytes(w=64, h=48, fmt="PNG") -> bytes:
    xs = np.linspace(0, 255, w, dtype=np.float64)[None, :]
    ys = np.linspace(0, 255, h, dtype=np.float64)[:, None]
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[..., 0] = (xs * np.ones_like(ys)).astype(np.uint8)
    arr[..., 1] = (ys * np.ones_like(xs)).astype(np.uint8)
    arr[..., 2] = 96
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format=fmt)
    return buf.getvalue()


def make_animated_gif_bytes(frames=3, w=8, h=8) -> bytes:
    images = [Image.new("RGB", (w, h), (i * 60, 0, 255 - i * 60)) for i in range(frames)]
    buf = io.BytesIO()
    images[0].save(buf, format="GIF", save_all=True, append_images=images[1:], duration=100, loop=0)
    return buf.getvalue()


@pytest.fixture(scope="session")
def client() -> TestClient:
    # lazy import after env configured
    from imgforge.main import create_app

    app = create_app()
    return TestClient(app)


@pytest.fixture()
def png_bytes() -> bytes:
    return make_image_bytes(w=40, h=20)


@pytest.fixture()
def settings():
    from imgforge.domain.settings import ImageSettings

    return ImageSettings()
