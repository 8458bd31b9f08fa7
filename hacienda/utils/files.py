import re
import uuid

INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')
UNSAFE_KEY_CHARS = re.compile(r"[^a-zA-Z0-9.-]")
RESERVED_NAMES = {"CON", "PRN", "AUX", "NUL", "COM1", "LPT1"}
MAX_NAME_LENGTH = 255

MIME_TYPES = {
    "pdf": "application/pdf",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "csv": "text/csv",
    "txt": "text/plain",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "zip": "application/zip",
    "json": "application/json",
    "sql": "text/plain",
}


def is_valid_file_name(name: str | None) -> bool:
    if not name or not name.strip():
        return False
    if len(name) > MAX_NAME_LENGTH:
        return False
    if INVALID_NAME_CHARS.search(name):
        return False
    if name.upper().split(".")[0] in RESERVED_NAMES:
        return False
    return True


def sanitize_file_name(name: str) -> str:
    return INVALID_NAME_CHARS.sub("_", name).strip()[:MAX_NAME_LENGTH]


def get_file_extension(filename: str) -> str:
    """Lower-cased text after the last dot, or "" when there is none."""
    parts = filename.split(".")
    return parts[-1].lower() if len(parts) > 1 else ""


def get_mime_type(filename: str) -> str:
    return MIME_TYPES.get(get_file_extension(filename), "application/octet-stream")


def with_extension_of(original: str, new_name: str) -> str:
    """Carry the extension of ``original`` over to ``new_name``.

    The extension is appended unless ``new_name`` already ends with it.
    """
    new_name = new_name.strip()
    ext = get_file_extension(original)
    if not ext:
        return new_name
    if new_name.lower().endswith(f".{ext}"):
        return new_name
    original_ext = original.rsplit(".", 1)[1]
    return f"{new_name}.{original_ext}"


def generate_storage_key(folder_id: str | None, file_name: str, prefix: str = "files/") -> str:
    safe_name = UNSAFE_KEY_CHARS.sub("_", file_name)
    folder = f"{folder_id}/" if folder_id else ""
    return f"{prefix}{folder}{uuid.uuid4()}_{safe_name}"


def format_file_size(size: int | None) -> str:
    if not size:
        return "-"
    units = ["B", "KB", "MB", "GB", "TB"]
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(units) - 1:
        value /= 1024
        unit += 1
    return f"{value:.{0 if unit == 0 else 1}f} {units[unit]}"
