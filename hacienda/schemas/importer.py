from pydantic import BaseModel


class ImportStatus(BaseModel):
    total: int = 0
    processed: int = 0
    folders: int = 0
    files: int = 0
    skipped: int = 0
    errors: list[str] = []
    debug_info: str = ""
