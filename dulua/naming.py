import hashlib
from pathlib import Path

HASH_LENGTH = 10


def external_name(path) -> str:
    """
    Synthetic module key for a file living outside the project tree:
    the first ten hex digits of the SHA-1 of its absolute path, then its
    file name, e.g. "3f9c0a1b2e:vec3.lua".
    """
    path = Path(path)
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()[:HASH_LENGTH]
    return f"{digest}:{path.name}"
