"""Map handles to object paths on a storage provider.

Data objects are sharded into 256 subdirectories by the first two
characters of their name; every other category is a flat directory.
"""

from blobbench.handle import FileType, Handle

_DIRS = {
    FileType.DATA: "data",
    FileType.KEY: "keys",
    FileType.LOCK: "locks",
    FileType.SNAPSHOT: "snapshots",
    FileType.INDEX: "index",
}

CONFIG_NAME = "config"


def type_prefix(file_type: FileType) -> str:
    """Return the directory holding all objects of a category."""
    if file_type == FileType.CONFIG:
        return CONFIG_NAME
    return _DIRS[file_type]


def object_path(handle: Handle) -> str:
    """Return the slash-separated relative path of an object."""
    handle.validate()
    if handle.type == FileType.CONFIG:
        return CONFIG_NAME
    if handle.type == FileType.DATA:
        return f"data/{handle.name[:2]}/{handle.name}"
    return f"{_DIRS[handle.type]}/{handle.name}"


def name_from_path(path: str) -> str:
    """Return the object name for a relative path produced by object_path."""
    return path.rsplit("/", 1)[-1]
