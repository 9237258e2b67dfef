"""
Image store - whole-file access to the images directory plus Pillow probing

Every file operation reads or writes a full buffer; CPU-bound work (hashing,
decoding, rotating) runs in a small thread pool so the event loop stays free.
"""
import io
import asyncio
import hashlib
from pathlib import Path
from dataclasses import dataclass
from concurrent.futures import ThreadPoolExecutor
from fastapi import Request
from PIL import Image as PILImage, ImageSequence

from ..errors import ValidationError

# Supported image extensions (all support rotation)
IMAGE_EXTENSIONS = {'.jpg', '.jpeg', '.png', '.gif', '.webp', '.bmp'}

# Clockwise rotation -> Pillow transpose (Pillow's ROTATE_* turn counter-clockwise)
_TRANSPOSE_FOR_DEGREES = {
    90: PILImage.Transpose.ROTATE_270,
    180: PILImage.Transpose.ROTATE_180,
    270: PILImage.Transpose.ROTATE_90,
}

# Formats whose encoder accepts an exif= block
_EXIF_FORMATS = {"JPEG", "PNG", "WEBP"}

# Thread pool for CPU-bound operations (hashing, decoding, rotation)
_executor = ThreadPoolExecutor(max_workers=4)


def is_supported_image(filename: str) -> bool:
    """Check if a filename has a supported image extension"""
    return Path(filename).suffix.lower() in IMAGE_EXTENSIONS


def calculate_checksum(data: bytes) -> str:
    """Calculate SHA256 hash of file contents"""
    return hashlib.sha256(data).hexdigest()


@dataclass
class ImageProbe:
    width: int
    height: int
    format: str

    @property
    def mime_type(self) -> str:
        return PILImage.MIME.get(self.format, f"image/{self.format.lower()}")


def probe_image(data: bytes) -> ImageProbe:
    """Decode image headers and verify the file; raises if Pillow cannot read it"""
    with PILImage.open(io.BytesIO(data)) as img:
        width, height = img.size
        image_format = img.format
        img.verify()
    return ImageProbe(width=width, height=height, format=image_format)


def _save_options(img, image_format: str) -> dict:
    """Per-format encoder settings, keeping the camera metadata where the format can hold it"""
    save_kwargs = {}
    if image_format == 'JPEG':
        save_kwargs['quality'] = 95
        save_kwargs['optimize'] = True
    elif image_format == 'WEBP':
        save_kwargs['quality'] = 95
        save_kwargs['method'] = 6
    elif image_format == 'PNG':
        save_kwargs['optimize'] = True

    exif_data = img.info.get('exif')
    if exif_data and image_format in _EXIF_FORMATS:
        save_kwargs['exif'] = exif_data
    return save_kwargs


def rotate_image_bytes(data: bytes, degrees: int) -> bytes:
    """Rotate an encoded image clockwise and re-encode it in its own format.

    Every frame of an animated GIF/WebP is turned, keeping frame durations
    and the loop count. Raises OSError when the pixel data cannot be decoded.
    """
    transpose = _TRANSPOSE_FOR_DEGREES.get(degrees)
    if transpose is None:
        raise ValidationError("Invalid rotation degrees. Must be 90, 180, or 270.")

    with PILImage.open(io.BytesIO(data)) as img:
        image_format = img.format
        save_kwargs = _save_options(img, image_format)

        if getattr(img, 'n_frames', 1) > 1:
            frames = []
            durations = []
            for frame in ImageSequence.Iterator(img):
                frames.append(frame.copy().transpose(transpose))
                durations.append(frame.info.get('duration', 100))
            rotated = frames[0]
            save_kwargs['save_all'] = True
            save_kwargs['append_images'] = frames[1:]
            save_kwargs['duration'] = durations
            if 'loop' in img.info:
                save_kwargs['loop'] = img.info['loop']
        else:
            rotated = img.transpose(transpose)

    output = io.BytesIO()
    rotated.save(output, format=image_format, **save_kwargs)
    return output.getvalue()


async def probe_image_async(data: bytes) -> ImageProbe:
    """Async wrapper for probing image dimensions and format"""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(_executor, probe_image, data)


async def calculate_checksum_async(data: bytes) -> str:
    """Async wrapper for content hashing"""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(_executor, calculate_checksum, data)


async def rotate_image_bytes_async(data: bytes, degrees: int) -> bytes:
    """Async wrapper for image rotation"""
    loop = asyncio.get_event_loop()
    return await loop.run_in_executor(_executor, rotate_image_bytes, data, degrees)


class ImageStore:
    """Filesystem side of the gallery: one flat directory of image files"""

    def __init__(self, images_dir):
        self.images_dir = Path(images_dir)

    def get_image_path(self, filename: str) -> Path:
        """Get the full path to a specific image file"""
        # Only plain names inside the images directory
        if not filename or Path(filename).name != filename:
            raise ValidationError(f"Invalid filename: {filename}")
        return self.images_dir / filename

    def directory_exists(self) -> bool:
        return self.images_dir.is_dir()

    def image_exists(self, filename: str) -> bool:
        return self.get_image_path(filename).is_file()

    def list_images(self) -> list[str]:
        """List supported image files in the directory, sorted by name"""
        if not self.directory_exists():
            return []

        return sorted(
            entry.name
            for entry in self.images_dir.iterdir()
            if entry.is_file() and is_supported_image(entry.name)
        )

    def file_size(self, filename: str) -> int:
        return self.get_image_path(filename).stat().st_size

    async def read_image(self, filename: str) -> bytes:
        """Read image file as bytes"""
        path = self.get_image_path(filename)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(_executor, path.read_bytes)

    async def write_image(self, filename: str, data: bytes) -> None:
        """Write image bytes to file, replacing any existing content"""
        if not is_supported_image(filename):
            raise ValidationError("File is not a supported image format")

        path = self.get_image_path(filename)
        loop = asyncio.get_event_loop()
        await loop.run_in_executor(_executor, path.write_bytes, data)


def get_image_store(request: Request) -> ImageStore:
    """Dependency for the app's image store."""
    return request.app.state.image_store
