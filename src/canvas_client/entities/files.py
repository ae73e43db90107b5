"""
File upload descriptions.
"""

import os
from dataclasses import dataclass
from typing import Any, BinaryIO, Dict, Optional, Union

from pydantic import BaseModel


class FileUploadToken(BaseModel):
    """
    Response to the first step of a file upload.

    Tells the client where to send the file (``upload_url``) and which extra
    form fields the storage backend expects (``upload_params``).
    """
    upload_url: Optional[str] = None
    upload_params: Dict[str, Any] = {}

    def form_fields(self) -> Dict[str, str]:
        return {name: str(value) for name, value in self.upload_params.items()}


@dataclass
class FileUpload:
    """
    A file to upload to Canvas.

    Can be used as a context manager, which closes the underlying stream.
    """

    name: str
    stream: BinaryIO
    size: Optional[int] = None
    content_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, os.PathLike], content_type: Optional[str] = None) -> "FileUpload":
        """
        Open a file on disk for upload.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        if not os.path.isfile(path):
            raise FileNotFoundError(f"File {os.path.basename(path)} does not exist")
        return cls(
            name=os.path.basename(path),
            stream=open(path, "rb"),
            size=os.path.getsize(path),
            content_type=content_type,
        )

    def generate_upload_args(self) -> Dict[str, str]:
        """The values describing this file for the initiate step."""
        args = {"name": self.name}
        if self.size is not None:
            args["size"] = str(self.size)
        if self.content_type:
            args["content_type"] = self.content_type
        return args

    def close(self) -> None:
        self.stream.close()

    def __enter__(self) -> "FileUpload":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __str__(self) -> str:
        if self.size is None:
            return self.name
        return f"{self.name} [{self.size} bytes]"
