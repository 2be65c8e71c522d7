"""
Albums - Identifiers

Album ids are always ``bson.ObjectId`` inside the package. Strings are
parsed once at the boundary, never compared loosely.
"""
from typing import Optional, Union
from bson import ObjectId
from bson.errors import InvalidId

AlbumId = ObjectId


def new_album_id() -> AlbumId:
    return ObjectId()


def parse_album_id(value: Union[str, ObjectId, None]) -> Optional[AlbumId]:
    """
    Parse an album id.

    Raises:
        ValueError: If the value is not a valid ObjectId.
    """
    if value is None:
        return None
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError) as e:
        raise ValueError(f"Malformed album id: {value!r}") from e


def format_album_id(value: Optional[AlbumId]) -> Optional[str]:
    if value is None:
        return None
    return str(value)
