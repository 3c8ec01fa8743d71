from .file_service import FileServiceClient
from .user_directory import UserDirectoryClient

__all__ = ["FileServiceClient", "UserDirectoryClient"]
