"""
KYC document pipeline — upload constraints and inline data-URL encoding.

Uploads are checked (size, media type) before their bytes are read, then
encoded as ``data:<media-type>;base64,<payload>`` and wrapped in an
AttachedDocument that travels unchanged to the request store.
"""

import base64
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Awaitable, Callable

from onboarding.errors import FileTooLargeError, UnsupportedTypeError

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MiB
ALLOWED_MEDIA_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "application/pdf"})


class DocumentType(str, Enum):
    ID_CARD = "id_card"
    PASSPORT = "passport"
    PROOF_OF_DEPOSIT = "proof_of_deposit"


class DocumentSlot(str, Enum):
    """Logical upload slots. IDENTITY holds either an id card or a passport."""
    IDENTITY = "identity"
    PROOF_OF_DEPOSIT = "proof_of_deposit"


IDENTITY_TYPES = (DocumentType.ID_CARD, DocumentType.PASSPORT)


@dataclass(frozen=True)
class UploadedFile:
    """A file offered for upload. `read` is only awaited after the checks pass."""
    file_name: str
    media_type: str
    size: int
    read: Callable[[], Awaitable[bytes]] = field(compare=False, repr=False)

    @classmethod
    def from_bytes(cls, file_name: str, media_type: str, content: bytes) -> "UploadedFile":
        async def _read() -> bytes:
            return content

        return cls(file_name=file_name, media_type=media_type, size=len(content), read=_read)


@dataclass(frozen=True)
class AttachedDocument:
    document_type: DocumentType
    file_name: str
    file_type: str
    file_size: int
    url: str
    uploaded_at: datetime

    @property
    def size_mb(self) -> float:
        return round(self.file_size / 1024 / 1024, 2)

    def to_dict(self) -> dict:
        return {
            "type": self.document_type.value,
            "file_name": self.file_name,
            "file_type": self.file_type,
            "file_size": self.file_size,
            "url": self.url,
            "uploaded_at": self.uploaded_at.isoformat(),
        }


def check_upload(file: UploadedFile, max_size: int = MAX_FILE_SIZE) -> None:
    """Raise FileTooLargeError / UnsupportedTypeError for rejected uploads."""
    if file.size > max_size:
        raise FileTooLargeError()
    if (file.media_type or "").lower() not in ALLOWED_MEDIA_TYPES:
        raise UnsupportedTypeError()


def encode_data_url(content: bytes, media_type: str) -> str:
    """Encode raw bytes as a base64 data URL tagged with its media type."""
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{media_type};base64,{payload}"


async def build_document(
    file: UploadedFile,
    document_type: DocumentType,
    max_size: int = MAX_FILE_SIZE,
) -> AttachedDocument:
    """Check, read and encode an upload into an AttachedDocument."""
    check_upload(file, max_size)
    content = await file.read()
    # Telegram may omit file_size, so the declared size is only a first check
    if len(content) > max_size:
        raise FileTooLargeError()
    media_type = file.media_type.lower()
    return AttachedDocument(
        document_type=document_type,
        file_name=file.file_name,
        file_type=media_type,
        file_size=len(content),
        url=encode_data_url(content, media_type),
        uploaded_at=datetime.now(timezone.utc),
    )
