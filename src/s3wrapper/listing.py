"""List S3 "directories" by rebuilding a tree from prefix/delimiter queries."""

from s3wrapper._glob import is_pattern
from s3wrapper._glob import to_pattern
from s3wrapper.retry import DEFAULT_POLICY
from s3wrapper.uri import get_directory_name
from s3wrapper.uri import get_filename
from s3wrapper.uri import get_parent_uri
from s3wrapper.uri import SEPARATOR

import json
import logging
import time


logger = logging.getLogger(__name__)

# User metadata written on upload, milliseconds since the epoch
USER_METADATA_LAST_MODIFIED_KEY = "lastmodified"


def to_millis(dt):
    if dt is None:
        return None
    return int(dt.timestamp() * 1000)


class S3File:
    """An S3 object or a synthetic S3 directory.

    Directories only have a URI; files also carry the metadata from the
    listing or from a head/get request.
    """

    def __init__(
        self,
        s3_uri,
        size=None,
        last_modified=None,
        etag=None,
        version_id=None,
        expiration=None,
        local_file=None,
    ):
        self.s3_uri = s3_uri
        self.size = size
        self.last_modified = last_modified
        self.etag = etag
        self.version_id = version_id
        self.expiration = expiration
        self.local_file = local_file

    @classmethod
    def from_metadata(cls, s3_uri, response):
        """Build from a head_object or get_object response.

        The ``lastmodified`` user metadata wins over the server's
        LastModified, it records the age of the content rather than the
        time S3 received it.
        """
        last_modified = None
        user_value = (response.get("Metadata") or {}).get(
            USER_METADATA_LAST_MODIFIED_KEY
        )
        if user_value:
            try:
                last_modified = int(user_value)
            except ValueError:
                logger.warning(
                    "Ignoring invalid %s metadata %r on %s",
                    USER_METADATA_LAST_MODIFIED_KEY,
                    user_value,
                    s3_uri,
                )
        if last_modified is None:
            last_modified = to_millis(response.get("LastModified"))
        return cls(
            s3_uri,
            size=response.get("ContentLength"),
            last_modified=last_modified,
            etag=response.get("ETag"),
            version_id=response.get("VersionId"),
            expiration=response.get("Expiration"),
        )

    @classmethod
    def from_summary(cls, s3_uri, summary):
        """Build from one ``Contents`` entry of a listing page."""
        return cls(
            s3_uri,
            size=summary.get("Size"),
            last_modified=to_millis(summary.get("LastModified")),
            etag=summary.get("ETag"),
        )

    @property
    def key(self):
        return self.s3_uri.key

    @property
    def filename(self):
        return get_filename(self.s3_uri)

    @property
    def directory(self):
        return get_directory_name(self.s3_uri)

    def to_dict(self):
        return {
            "key": self.s3_uri.key,
            "uri": str(self.s3_uri),
            "filename": self.filename,
            "directory": self.directory,
            "localFile": self.local_file,
            "size": self.size,
            "lastModified": self.last_modified,
            "eTag": self.etag,
            "versionId": self.version_id,
        }

    def __eq__(self, other):
        if not isinstance(other, S3File):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __hash__(self):
        return hash(self.s3_uri)

    def __repr__(self):
        return f"<S3File {self.s3_uri}>"


class S3List:
    """Directories and files found by a listing, keyed by S3 key.

    A key is never in both maps, the latest insertion wins.
    """

    def __init__(self):
        self.dirs = {}
        self.files = {}
        self.execution_time = None

    def put_file(self, s3_file):
        self.dirs.pop(s3_file.key, None)
        self.files[s3_file.key] = s3_file

    def put_dir(self, s3_file):
        self.files.pop(s3_file.key, None)
        self.dirs[s3_file.key] = s3_file

    def put_all(self, other):
        for s3_dir in other.dirs.values():
            self.put_dir(s3_dir)
        for s3_file in other.files.values():
            self.put_file(s3_file)

    def __len__(self):
        return len(self.dirs) + len(self.files)

    def to_dict(self):
        data = {}
        if self.dirs:
            data["directories"] = {
                key: self.dirs[key].to_dict() for key in sorted(self.dirs)
            }
        if self.files:
            data["files"] = {
                key: self.files[key].to_dict() for key in sorted(self.files)
            }
        data["executionTime"] = self.execution_time
        return data

    def __str__(self):
        return json.dumps(self.to_dict(), indent=4)

    def __repr__(self):
        return f"<S3List dirs={len(self.dirs)} files={len(self.files)}>"


def extension_filter(extensions):
    """Return a filename filter accepting names with one of ``extensions``."""
    suffixes = tuple(
        ext.lower() if ext.startswith(".") else "." + ext.lower() for ext in extensions
    )

    def accept(parent, name):
        return name is not None and name.lower().endswith(suffixes)

    return accept


def _skip_unaddressable(bucket, key):
    # S3URI collapses "//" runs and strips a leading "/"
    logger.warning(
        "Skipping s3://%s/%s, the key can not be addressed as an S3URI", bucket, key
    )


def _selected(name, key, parent_key, filename_filter, path_filter, pattern):
    if filename_filter is not None:
        return bool(filename_filter(parent_key, name))
    if path_filter is not None:
        return bool(path_filter(key))
    if pattern is not None:
        return name is not None and pattern.match(name) is not None
    return True


def ls(
    client,
    s3_uri,
    filename_filter=None,
    path_filter=None,
    recursive=False,
    page_size=None,
    policy=DEFAULT_POLICY,
):
    """List the S3 objects and common prefixes under ``s3_uri``.

    A ``*`` in the last key segment filters the parent directory by that
    pattern. ``filename_filter(parent_key, name)`` and ``path_filter(key)``
    take precedence over the pattern, in that order.
    Keys that an S3URI can not represent, with "//" runs or a leading
    "/", are logged and skipped.

    Recursive listings contain files only: flat enumeration does not
    report the intermediate directories.
    """
    s3_list = S3List()
    start = time.monotonic()

    pattern = None
    filename = get_filename(s3_uri)
    if is_pattern(filename):
        pattern = to_pattern(filename)
        s3_uri = get_parent_uri(s3_uri)

    bucket = s3_uri.bucket
    prefix = s3_uri.key
    delimiter = None if recursive else SEPARATOR

    token = None
    pages = 0
    while True:
        page = policy.call(
            client,
            client.list_objects,
            bucket,
            prefix,
            delimiter=delimiter,
            continuation_token=token,
            max_keys=page_size,
        )
        pages += 1

        for summary in page.get("Contents", []):
            key = summary["Key"]
            # The directory marker of the listed directory itself
            if key == prefix and key.endswith(SEPARATOR):
                continue
            if recursive and key.endswith(SEPARATOR):
                continue
            file_uri = s3_uri.with_key(key)
            if file_uri.key != key:
                _skip_unaddressable(bucket, key)
                continue
            if _selected(
                get_filename(file_uri),
                key,
                get_parent_uri(file_uri).key,
                filename_filter,
                path_filter,
                pattern,
            ):
                s3_list.put_file(S3File.from_summary(file_uri, summary))

        for common_prefix in page.get("CommonPrefixes", []):
            key = common_prefix["Prefix"]
            if not key.endswith(SEPARATOR):
                key += SEPARATOR
            dir_uri = s3_uri.with_key(key)
            if dir_uri.key != key:
                _skip_unaddressable(bucket, key)
                continue
            if _selected(
                get_directory_name(dir_uri),
                key,
                get_parent_uri(dir_uri).key,
                filename_filter,
                path_filter,
                pattern,
            ):
                s3_list.put_dir(S3File(dir_uri))

        if not page.get("IsTruncated"):
            break
        token = page.get("NextContinuationToken")

    s3_list.execution_time = int((time.monotonic() - start) * 1000)
    logger.debug(
        "Listed %s (%d pages): %d dirs, %d files in %d ms",
        s3_uri,
        pages,
        len(s3_list.dirs),
        len(s3_list.files),
        s3_list.execution_time,
    )
    return s3_list
