"""
Shared fixtures: a temporary SQLite database and images directory per test.
"""
import os
import tempfile

# Keep the settings defaults away from the real home directory
os.environ.setdefault('GALLERY_DATA_DIR', tempfile.mkdtemp(prefix='gallery-test-'))

import pytest
from PIL import Image as PILImage

from gallery.config import Settings
from gallery.database import Database
from gallery.models import Image, Person
from gallery.services.image_store import ImageStore


def write_image(directory, filename, width=800, height=600, color=(200, 120, 40)):
    """Write a solid-colour image; the format follows the file extension."""
    path = directory / filename
    PILImage.new('RGB', (width, height), color).save(path)
    return path


@pytest.fixture
def images_dir(tmp_path):
    path = tmp_path / "images"
    path.mkdir()
    return path


@pytest.fixture
def image_file(images_dir):
    """Write an image file into the images directory."""
    def _image_file(filename, width=800, height=600, **kwargs):
        return write_image(images_dir, filename, width=width, height=height, **kwargs)

    return _image_file


@pytest.fixture
def broken_file(images_dir):
    """Write a file with an image extension that Pillow cannot decode."""
    def _broken_file(filename):
        path = images_dir / filename
        path.write_bytes(b"this is not an image")
        return path

    return _broken_file


@pytest.fixture
def store(images_dir):
    return ImageStore(images_dir)


@pytest.fixture
async def database(tmp_path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await database.init()
    yield database
    await database.close()


@pytest.fixture
async def db(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def make_image(db):
    """Insert an Image row directly (no file on disk)."""
    async def _make_image(filename="photo.jpg", width=800, height=600, **kwargs):
        values = dict(
            filename=filename,
            original_name=filename,
            path=f"/images/{filename}",
            size=1024,
            width=width,
            height=height,
            mime_type="image/jpeg",
            is_active=True,
            tags=[],
        )
        values.update(kwargs)
        image = Image(**values)
        db.add(image)
        await db.commit()
        return image

    return _make_image


@pytest.fixture
def make_person(db):
    """Insert a Person row directly."""
    async def _make_person(name="Ada Lovelace", **kwargs):
        person = Person(name=name, **kwargs)
        db.add(person)
        await db.commit()
        return person

    return _make_person


@pytest.fixture
def settings(tmp_path, images_dir):
    return Settings(
        data_dir=str(tmp_path),
        images_dir=str(images_dir),
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'api.db'}",
        sync_on_startup=False,
    )
