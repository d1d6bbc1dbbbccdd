import hashlib

from client_manager.constants import CLEAN_CLIENT_MD5


def digest(data: bytes) -> str:
    """
    MD5 hex digest of a client binary.

    MD5 is only used to compare against the published clean-client digest.
    """
    return hashlib.md5(data, usedforsecurity=False).hexdigest()


def is_clean(data: bytes) -> bool:
    """Check whether `data` is the known-clean client executable."""
    return digest(data) == CLEAN_CLIENT_MD5
