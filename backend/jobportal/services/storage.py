"""
Object storage for resumes (Supabase Storage or the local upload dir) and
company logos (Cloudinary).
"""
import hashlib
import logging
import time
from pathlib import Path

import httpx

from .. import config
from ..utils.error_handlers import FileUploadError, StorageError

logger = logging.getLogger(__name__)

CLOUDINARY_API_BASE = "https://api.cloudinary.com/v1_1"
LOGO_TRANSFORMATION = "c_fit,w_400,h_400,q_auto,f_auto"

# Tests swap this for an httpx.MockTransport.
_transport: httpx.BaseTransport | None = None


def _client() -> httpx.Client:
    return httpx.Client(timeout=config.HTTP_TIMEOUT_S, transport=_transport)


def _safe_truncate(s: str, n: int = 300) -> str:
    s = s or ""
    return s if len(s) <= n else s[:n] + "..."


# -------------------- Resumes --------------------

def _supabase_headers(content_type: str | None = None) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {config.SUPABASE_KEY}",
        "apikey": config.SUPABASE_KEY,
    }
    if content_type:
        headers["Content-Type"] = content_type
    return headers


def _supabase_object_url(path: str) -> str:
    return f"{config.SUPABASE_URL}/storage/v1/object/{config.SUPABASE_RESUME_BUCKET}/{path}"


def _supabase_public_url(path: str) -> str:
    return f"{config.SUPABASE_URL}/storage/v1/object/public/{config.SUPABASE_RESUME_BUCKET}/{path}"


def store_resume(path: str, content: bytes, content_type: str) -> dict:
    """
    Store a resume under `path` and return {"url", "path", "provider"}.
    Existing objects at the same path are replaced.
    """
    if config.STORAGE_BACKEND == "supabase":
        if not config.SUPABASE_URL or not config.SUPABASE_KEY:
            raise StorageError("Resume storage is not configured")
        headers = _supabase_headers(content_type)
        headers.update({"x-upsert": "true", "cache-control": "3600"})
        try:
            with _client() as client:
                r = client.post(_supabase_object_url(path), content=content, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Supabase upload failed for %s: %s", path, e)
            raise StorageError() from e
        if r.status_code >= 400:
            logger.error("Supabase upload failed for %s: %s %s", path, r.status_code, _safe_truncate(r.text))
            raise FileUploadError(
                f"Failed to upload resume: {_safe_truncate(r.text, 120) or r.status_code}",
                status_code=502,
            )
        return {"url": _supabase_public_url(path), "path": path, "provider": "supabase"}

    dest = Path(config.UPLOAD_DIR) / path
    try:
        dest.parent.mkdir(parents=True, exist_ok=True)
        with open(dest, "wb") as out:
            out.write(content)
    except OSError as e:
        logger.error("File save error for %s: %s", dest, e)
        raise StorageError("Failed to prepare storage") from e
    return {"url": f"{config.PUBLIC_FILES_URL}/{path}", "path": path, "provider": "local"}


def delete_resume_file(path: str, provider: str | None) -> None:
    """Remove a stored resume. Raises StorageError; callers decide whether that is fatal."""
    if provider == "supabase":
        try:
            with _client() as client:
                r = client.request(
                    "DELETE",
                    f"{config.SUPABASE_URL}/storage/v1/object/{config.SUPABASE_RESUME_BUCKET}",
                    json={"prefixes": [path]},
                    headers=_supabase_headers("application/json"),
                )
        except httpx.HTTPError as e:
            raise StorageError(f"Failed to delete resume: {e}") from e
        if r.status_code >= 400:
            raise StorageError(f"Failed to delete resume: {r.status_code} {_safe_truncate(r.text)}")
        return

    target = Path(config.UPLOAD_DIR) / path
    try:
        target.unlink(missing_ok=True)
    except OSError as e:
        raise StorageError(f"Failed to delete resume: {e}") from e


# -------------------- Logos --------------------

def upload_logo(content: bytes, filename: str, content_type: str, company_id: int | str) -> dict:
    """Unsigned upload to Cloudinary; returns {"url", "public_id", "width", "height"}."""
    if not config.CLOUDINARY_CLOUD_NAME:
        raise StorageError("Logo uploads are not configured")

    url = f"{CLOUDINARY_API_BASE}/{config.CLOUDINARY_CLOUD_NAME}/image/upload"
    data = {
        "upload_preset": config.CLOUDINARY_UPLOAD_PRESET,
        "folder": f"job-portal/logos/{company_id}",
        "transformation": LOGO_TRANSFORMATION,
    }
    files = {"file": (filename, content, content_type)}
    try:
        with _client() as client:
            r = client.post(url, data=data, files=files)
    except httpx.HTTPError as e:
        logger.error("Cloudinary upload failed: %s", e)
        raise StorageError() from e

    if r.status_code >= 400:
        logger.error("Cloudinary upload failed: %s %s", r.status_code, _safe_truncate(r.text))
        raise FileUploadError(
            f"Cloudinary upload failed: {r.reason_phrase or r.status_code}",
            status_code=502,
        )

    body = r.json() or {}
    return {
        "url": body.get("secure_url") or body.get("url"),
        "public_id": body.get("public_id"),
        "width": body.get("width"),
        "height": body.get("height"),
    }


def _cloudinary_signature(params: dict, api_secret: str) -> str:
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params))
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


def delete_logo(public_id: str | None) -> bool:
    """
    Signed destroy call. Needs CLOUDINARY_API_KEY/SECRET; without them the
    logo is left in place. Never raises, returns whether the logo was removed.
    """
    if not public_id:
        return False
    if not (config.CLOUDINARY_CLOUD_NAME and config.CLOUDINARY_API_KEY and config.CLOUDINARY_API_SECRET):
        logger.info("Cloudinary credentials not set; leaving logo %s in place", public_id)
        return False

    params = {"public_id": public_id, "timestamp": int(time.time())}
    data = {
        **params,
        "api_key": config.CLOUDINARY_API_KEY,
        "signature": _cloudinary_signature(params, config.CLOUDINARY_API_SECRET),
    }
    url = f"{CLOUDINARY_API_BASE}/{config.CLOUDINARY_CLOUD_NAME}/image/destroy"
    try:
        with _client() as client:
            r = client.post(url, data=data)
    except httpx.HTTPError as e:
        logger.warning("Failed to delete logo %s: %s", public_id, e)
        return False
    if r.status_code >= 400:
        logger.warning("Failed to delete logo %s: %s %s", public_id, r.status_code, _safe_truncate(r.text))
        return False
    return True
