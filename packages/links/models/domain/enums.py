from enum import Enum


class LinkType(str, Enum):
    STANDARD = "standard"
    FILE = "file"


class CreatedBy(str, Enum):
    REGISTERED_USER = "registered_user"
    ANONYMOUS = "anonymous"


class FileKind(str, Enum):
    """Filter for the user file listing."""

    ALL = "all"
    PDF = "pdf"
    IMAGE = "image"


class FileSortField(str, Enum):
    CREATED_AT = "created_at"
    CLICKS = "clicks"
    FILE_SIZE = "file_size"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"
