from enum import StrEnum


class StorageType(StrEnum):
    OPENDAL = "opendal"
    LOCAL = "local"
