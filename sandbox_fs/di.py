# sandbox_fs/di.py
from dataclasses import dataclass
from typing import Optional

from sandbox_fs.config import Settings
from sandbox_fs.services.filesystem import FileSystemService

@dataclass
class Container:
    settings: Settings
    fs_service: FileSystemService

def build_container(settings: Optional[Settings] = None) -> Container:
    s = settings or Settings()
    fs = FileSystemService(s.SANDBOX_ROOT)
    return Container(s, fs)
