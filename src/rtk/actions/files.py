"""File actions: copy, create, delete, read, write, list and inspect paths.

Every operation takes plain path strings, as they arrive from a caller or a
stored job. Mutating operations return ``True``; failures raise and the
dispatcher turns them into ``HandlerFailureError``.
"""

from __future__ import annotations

import mimetypes
import os
import shutil
from pathlib import Path
from typing import Any

import httpx

from rtk.core.logging import get_logger
from rtk.framework.params import ParamType
from rtk.framework.registry import ActionDescriptor, action

logger = get_logger(__name__)

MAX_DOWNLOAD_BYTES = 1 << 24  # 16 MiB

S = ParamType.STRING


class FileActions:
    """Handler group for file-related actions."""

    def __init__(self, timeout: float = 30.0, transport: httpx.BaseTransport | None = None) -> None:
        self.timeout = timeout
        self.transport = transport

    def descriptors(self) -> list[ActionDescriptor]:
        return [
            action("copyDirectory", self.copy_directory, S, S, aliases=["copyDir"]),
            action("copyFile", self.copy_file, S, S),
            action("createDirectory", self.create_directory, S, aliases=["createDir"]),
            action("createFile", self.create_file, S),
            action("deleteDirectory", self.delete_directory, S, aliases=["deleteDir"]),
            action("deleteFile", self.delete_file, S),
            action("getFileContent", self.get_file_content, S, aliases=["getContent"]),
            action(
                "getFileInformations",
                self.get_file_informations,
                S,
                aliases=["fileInformations", "informations"],
            ),
            action("listDirectories", self.list_directories, S, aliases=["listDirs"]),
            action("listFiles", self.list_files, S),
            action("listFilesAndDirectories", self.list_files_and_directories, S, aliases=["listFilesDirs"]),
            action("sendFile", self.send_file, S, S, aliases=["fileSend"]),
            action("setFileContent", self.set_file_content, S, S, aliases=["setContent"]),
        ]

    # === Mutations ===

    def copy_directory(self, source: str, target: str) -> bool:
        """Copy a directory tree, merging into an existing target."""
        shutil.copytree(source, target, dirs_exist_ok=True)
        return True

    def copy_file(self, source: str, target: str) -> bool:
        """Copy a file, creating the target's parent directories."""
        Path(target).parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, target)
        return True

    def create_directory(self, directory: str) -> bool:
        """Create a directory and any missing parents."""
        Path(directory).mkdir(parents=True, exist_ok=True)
        return True

    def create_file(self, file: str) -> bool:
        """Create an empty file unless it already exists."""
        Path(file).touch(exist_ok=True)
        return True

    def delete_directory(self, directory: str) -> bool:
        """Delete a directory tree; a missing directory is not an error."""
        path = Path(directory)
        if not path.exists():
            return True
        if not path.is_dir():
            raise NotADirectoryError(f"Not a directory: {directory}")
        shutil.rmtree(path)
        return True

    def delete_file(self, file: str) -> bool:
        """Delete a file or directory; a missing path is not an error."""
        path = Path(file)
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
        return True

    def set_file_content(self, file: str, content: str) -> bool:
        """Replace a file's content (UTF-8), creating parent directories."""
        path = Path(file)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return True

    def send_file(self, url: str, file: str) -> bool:
        """Download ``url`` into ``file``, keeping at most 16 MiB."""
        path = Path(file)
        self.delete_file(file)
        path.parent.mkdir(parents=True, exist_ok=True)

        written = 0
        with httpx.Client(timeout=self.timeout, transport=self.transport, follow_redirects=True) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()
                with path.open("wb") as out:
                    for chunk in response.iter_bytes():
                        chunk = chunk[: MAX_DOWNLOAD_BYTES - written]
                        out.write(chunk)
                        written += len(chunk)
                        if written >= MAX_DOWNLOAD_BYTES:
                            logger.warning("file.download_truncated", url=url, file=file, limit_bytes=MAX_DOWNLOAD_BYTES)
                            break

        logger.info("file.downloaded", url=url, file=file, size_bytes=written)
        return True

    # === Reads ===

    def get_file_content(self, file: str) -> str:
        """Read a file as UTF-8 text."""
        return Path(file).read_text(encoding="utf-8")

    def get_file_informations(self, file: str) -> dict[str, Any]:
        """Describe a path; ``{}`` if it does not exist."""
        path = Path(file)
        if not path.exists():
            return {}
        info = {
            "Name": path.name,
            "Path": file,
            "Size": path.stat().st_size,
            "Execute": os.access(path, os.X_OK),
            "Read": os.access(path, os.R_OK),
            "Write": os.access(path, os.W_OK),
            "IsDirectory": path.is_dir(),
            "IsFile": path.is_file(),
            "IsHidden": path.name.startswith("."),
            "Mime": mimetypes.guess_type(path.name)[0],
        }
        return dict(sorted(info.items()))

    def list_directories(self, directory: str) -> list[str]:
        """Names of the sub-directories of ``directory``."""
        with os.scandir(directory) as entries:
            return sorted(entry.name for entry in entries if entry.is_dir())

    def list_files(self, directory: str) -> list[str]:
        """Names of the regular files in ``directory``."""
        with os.scandir(directory) as entries:
            return sorted(entry.name for entry in entries if entry.is_file())

    def list_files_and_directories(self, directory: str) -> list[str]:
        with os.scandir(directory) as entries:
            return sorted(entry.name for entry in entries)
