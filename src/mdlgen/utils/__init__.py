from .io import safe_read_file
from .paths import artifact_path, safe_file_path

__all__ = ["safe_read_file", "artifact_path", "safe_file_path"]
