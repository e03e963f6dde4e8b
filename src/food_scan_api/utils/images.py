"""Image payload handling for base64 uploads."""

import base64
import binascii
import re
from dataclasses import dataclass

DATA_URL_RE = re.compile(r"^data:(image/[\w.+-]+);base64,(.*)$", re.DOTALL)

DEFAULT_CONTENT_TYPE = "image/jpeg"

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "image/heic": "heic",
    "image/gif": "gif",
}


@dataclass(frozen=True)
class ImagePayload:
    """
    An image received as base64 text.

    Clients send either raw base64 (mobile cameras, assumed JPEG) or an
    already complete data URL.
    """

    content_type: str
    base64_data: str

    @classmethod
    def from_request(cls, image_base64: str) -> "ImagePayload":
        """Build a payload from the request field."""
        text = image_base64.strip()
        match = DATA_URL_RE.match(text)
        if match:
            return cls(content_type=match.group(1).lower(), base64_data=match.group(2))
        return cls(content_type=DEFAULT_CONTENT_TYPE, base64_data=text)

    @property
    def data_url(self) -> str:
        """Embeddable data URL for multimodal prompts."""
        return f"data:{self.content_type};base64,{self.base64_data}"

    @property
    def extension(self) -> str:
        return EXTENSIONS.get(self.content_type, "jpg")

    def to_bytes(self) -> bytes:
        """
        Decode the image bytes.

        Raises:
            ValueError: If the payload is not valid base64
        """
        try:
            return base64.b64decode(self.base64_data, validate=False)
        except (binascii.Error, ValueError) as e:
            raise ValueError(f"Invalid base64 image data: {e}") from e
