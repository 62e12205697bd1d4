"""Local file storage for uploaded resumes."""

import logging
import uuid
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Content type -> extension used for the stored file.
RESUME_CONTENT_TYPES: dict[str, str] = {
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}


class LocalStorage:
    """Local file storage handler."""

    def __init__(self, base_path: str = "./storage/uploads", url_prefix: str = "/uploads"):
        """
        Initialize local storage.

        Args:
            base_path: Base directory for file storage
            url_prefix: Public URL prefix the base directory is served under
        """
        self.base_path = Path(base_path)
        self.url_prefix = url_prefix.rstrip("/")
        self.base_path.mkdir(parents=True, exist_ok=True)

    def save(self, file_data: bytes, filename: str) -> Path:
        """
        Save file to local storage.

        Args:
            file_data: File contents
            filename: Name of the file

        Returns:
            Path to saved file
        """
        file_path = self.base_path / filename
        file_path.write_bytes(file_data)
        logger.info(f"Saved file to {file_path}")
        return file_path

    def save_resume(self, file_data: bytes, content_type: str, original_name: Optional[str] = None) -> str:
        """
        Store a resume under a random name and return its public URL.

        The extension comes from the content type; the client file name is
        only used when it agrees with it.
        """
        extension = RESUME_CONTENT_TYPES[content_type]
        if original_name and "." in original_name:
            suffix = original_name.rsplit(".", 1)[-1].lower()
            if suffix in RESUME_CONTENT_TYPES.values():
                extension = suffix
        filename = f"{uuid.uuid4()}.{extension}"
        self.save(file_data, filename)
        return self.get_url(filename)

    def exists(self, filename: str) -> bool:
        return (self.base_path / filename).exists()

    def delete(self, filename: str) -> bool:
        """
        Delete file from local storage.

        Returns:
            True if deleted successfully
        """
        file_path = self.base_path / filename
        if not file_path.exists():
            return False
        file_path.unlink()
        logger.info(f"Deleted file: {file_path}")
        return True

    def get_url(self, filename: str) -> str:
        return f"{self.url_prefix}/{filename}"
