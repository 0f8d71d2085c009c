"""S3 URIs and the key algebra used to fake directories on a flat key space.

Keys use ``/`` as a structural separator by convention only. A key ending
in ``/`` denotes a directory-like prefix, anything else a single object.
"""

from dataclasses import dataclass
from urllib.request import pathname2url
from urllib.request import url2pathname

import os
import re


S3_SCHEME = "s3"
FILE_SCHEME = "file"
SEPARATOR = "/"

_SEPARATOR_RUN_RE = re.compile("/{2,}")


def _normalize_key(key, scheme):
    key = _SEPARATOR_RUN_RE.sub(SEPARATOR, key or "")
    if scheme == FILE_SCHEME:
        return key
    return key.lstrip(SEPARATOR)


@dataclass(frozen=True)
class S3URI:
    """Immutable (scheme, bucket, key) locator.

    ``file`` URIs have an empty bucket and keep the absolute local path
    as their key.
    """

    bucket: str
    key: str = ""
    scheme: str = S3_SCHEME

    def __post_init__(self):
        if self.scheme not in (S3_SCHEME, FILE_SCHEME):
            raise ValueError(f"Unsupported URI scheme: {self.scheme!r}")
        if self.scheme == S3_SCHEME and not self.bucket:
            raise ValueError("S3 URI bucket must not be empty")
        object.__setattr__(self, "key", _normalize_key(self.key, self.scheme))

    @classmethod
    def parse(cls, uri):
        """Parse ``s3://bucket/key`` or ``file:///local/path``."""
        scheme, sep, rest = uri.partition("://")
        if not sep:
            raise ValueError(f"Not a URI: {uri!r}")
        scheme = scheme.lower()
        if scheme == FILE_SCHEME:
            # file://host/path is not supported, only file:///path
            return cls("", url2pathname(rest), FILE_SCHEME)
        bucket, _, key = rest.partition(SEPARATOR)
        return cls(bucket, key, scheme)

    @classmethod
    def from_local_path(cls, path):
        return cls("", os.path.abspath(path), FILE_SCHEME)

    @property
    def is_local(self):
        return self.scheme == FILE_SCHEME

    @property
    def local_path(self):
        """Local filesystem path of a ``file`` URI, None for S3 URIs."""
        if not self.is_local:
            return None
        return self.key

    def with_key(self, key):
        return S3URI(self.bucket, key, self.scheme)

    def __str__(self):
        if self.is_local:
            return f"{FILE_SCHEME}://{pathname2url(self.key)}"
        return f"{self.scheme}://{self.bucket}/{self.key}"


def get_filename(s3_uri):
    """Return the last key segment, or None if the key denotes a directory."""
    if s3_uri is None:
        return None
    key = s3_uri.key
    if not key or key.endswith(SEPARATOR):
        return None
    return key.rpartition(SEPARATOR)[2]


def get_directory_name(s3_uri):
    """Return the name of the directory the key denotes or lives in.

    ``a/b/`` gives ``b``, ``a/b/c.txt`` gives ``b``. A top-level file key
    and the root key give None.
    """
    if s3_uri is None:
        return None
    key = s3_uri.key
    if not key:
        return None
    if key.endswith(SEPARATOR):
        key = key[: -len(SEPARATOR)]
    else:
        key, sep, _ = key.rpartition(SEPARATOR)
        if not sep:
            return None
    return key.rpartition(SEPARATOR)[2] or None


def get_parent_key(key):
    if not key:
        return ""
    if key.endswith(SEPARATOR):
        key = key[: -len(SEPARATOR)]
    head, sep, _ = key.rpartition(SEPARATOR)
    if not sep:
        return ""
    return head + SEPARATOR


def get_parent_uri(s3_uri):
    """Return the URI of the parent directory; the root is its own parent."""
    if s3_uri is None:
        return None
    parent_key = get_parent_key(s3_uri.key)
    if s3_uri.is_local and not parent_key:
        parent_key = SEPARATOR
    return s3_uri.with_key(parent_key)


def get_child_uri(s3_uri, name):
    """Return the URI of ``name`` inside ``s3_uri``."""
    if s3_uri is None:
        return None
    key = s3_uri.key
    if key and not key.endswith(SEPARATOR):
        key += SEPARATOR
    return s3_uri.with_key(key + name)


def is_directory(s3_uri):
    return s3_uri is not None and s3_uri.key.endswith(SEPARATOR)


def as_directory_key(key):
    """Return ``key`` with exactly one trailing separator (root stays empty)."""
    if not key or key.endswith(SEPARATOR):
        return key
    return key + SEPARATOR


def relative_key(key, base_key):
    """Return ``key`` relative to the directory key ``base_key``."""
    if base_key and key.startswith(base_key):
        return key[len(base_key):]
    return key


def get_local_parent(path):
    """Return the parent directory of ``path``, ``.`` for a bare name."""
    if path is None:
        return None
    return os.path.dirname(os.path.normpath(path)) or os.curdir


def get_local_child(path, name):
    if path is None:
        return None
    return os.path.normpath(os.path.join(path, name))
