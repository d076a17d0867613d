"""
Upload checks for resumes and company logos.

Every check runs on the bytes already received by the API, so a rejected
file never reaches object storage or the image host.
"""
import io
from dataclasses import dataclass
import re
import time

from PIL import Image, UnidentifiedImageError

from .error_handlers import FileUploadError

MAX_RESUME_SIZE = 1024 * 1024  # 1MB
ALLOWED_RESUME_TYPES = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/msword": "doc",
}

MAX_IMAGE_SIZE = 5 * 1024 * 1024  # 5MB
RECOMMENDED_IMAGE_SIZE = 200 * 1024
ALLOWED_IMAGE_TYPES = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/svg+xml": "svg",
    "image/webp": "webp",
}
MIN_DIMENSIONS = (100, 100)
MAX_DIMENSIONS = (2000, 2000)


def get_file_extension(filename: str) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def format_file_size(size_bytes: int) -> str:
    if not size_bytes:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    i = 0
    value = float(size_bytes)
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    value = round(value, 2)
    # 1.0 -> "1", 1.5 -> "1.5"
    return f"{value:g} {units[i]}"


def generate_unique_filename(original_filename: str, owner_id: int | str, prefix: str = "resumes") -> str:
    """`<prefix>/<owner_id>/<millis>_<safe base name>.<ext>`"""
    timestamp = int(time.time() * 1000)
    extension = get_file_extension(original_filename)
    base_name = re.sub(r"\.[^/.]+$", "", original_filename or "")
    base_name = re.sub(r"[^a-zA-Z0-9\-_]", "_", base_name) or "file"
    return f"{prefix}/{owner_id}/{timestamp}_{base_name}.{extension}"


def _check_size(size: int, limit: int) -> None:
    if size > limit:
        raise FileUploadError(
            f"File size ({format_file_size(size)}) exceeds maximum allowed size ({format_file_size(limit)})",
            details={"code": "FILE_TOO_LARGE"},
            status_code=413,
        )


def _check_extension(filename: str, expected: str, *, allow_jpeg: bool = False) -> None:
    extension = get_file_extension(filename)
    if extension == expected or (allow_jpeg and extension == "jpeg" and expected == "jpg"):
        return
    raise FileUploadError(
        f'File extension "{extension}" doesn\'t match the file type. Expected "{expected}".',
        details={"code": "EXTENSION_MISMATCH"},
    )


def validate_resume_file(filename: str, content_type: str | None, content: bytes) -> None:
    _check_size(len(content), MAX_RESUME_SIZE)

    expected = ALLOWED_RESUME_TYPES.get(content_type or "")
    if expected is None:
        raise FileUploadError(
            f'File type "{content_type}" is not supported. Please upload a PDF or Word document.',
            details={"code": "INVALID_FILE_TYPE"},
        )

    _check_extension(filename, expected)


def get_image_dimensions(content: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(content)) as img:
        return img.size


def validate_logo_image(filename: str, content_type: str | None, content: bytes) -> None:
    _check_size(len(content), MAX_IMAGE_SIZE)

    expected = ALLOWED_IMAGE_TYPES.get(content_type or "")
    if expected is None:
        raise FileUploadError(
            f'File type "{content_type}" is not supported. Please upload a JPG, PNG, SVG, or WebP image.',
            details={"code": "INVALID_FILE_TYPE"},
        )

    _check_extension(filename, expected, allow_jpeg=True)

    # SVG has no intrinsic pixel size
    if content_type == "image/svg+xml":
        return

    try:
        width, height = get_image_dimensions(content)
    except (UnidentifiedImageError, OSError, Image.DecompressionBombError):
        raise FileUploadError(
            "Unable to read image file. Please ensure it's a valid image.",
            details={"code": "INVALID_IMAGE"},
        )

    if width < MIN_DIMENSIONS[0] or height < MIN_DIMENSIONS[1]:
        raise FileUploadError(
            f"Image is too small. Minimum size is {MIN_DIMENSIONS[0]}x{MIN_DIMENSIONS[1]} pixels.",
            details={"code": "IMAGE_TOO_SMALL"},
        )
    if width > MAX_DIMENSIONS[0] or height > MAX_DIMENSIONS[1]:
        raise FileUploadError(
            f"Image is too large. Maximum size is {MAX_DIMENSIONS[0]}x{MAX_DIMENSIONS[1]} pixels.",
            details={"code": "IMAGE_TOO_LARGE"},
        )


def is_recommended_logo_size(size_bytes: int) -> bool:
    return size_bytes <= RECOMMENDED_IMAGE_SIZE


@dataclass(frozen=True)
class FilePayload:
    """An upload already read into memory."""
    filename: str
    content_type: str | None
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)
