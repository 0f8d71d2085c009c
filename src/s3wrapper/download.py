"""Download S3 objects to local disk, skipping local copies that are current."""

from s3wrapper._glob import is_pattern
from s3wrapper._glob import to_pattern
from s3wrapper.exceptions import PreconditionError
from s3wrapper.exceptions import S3NotFoundError
from s3wrapper.exceptions import UnsupportedOperationError
from s3wrapper.listing import ls
from s3wrapper.listing import S3File
from s3wrapper.listing import S3List
from s3wrapper.retry import DEFAULT_POLICY
from s3wrapper.uri import get_filename
from s3wrapper.uri import get_parent_uri

import contextlib
import logging
import os
import shutil
import tempfile
import time


logger = logging.getLogger(__name__)


def local_last_modified(path):
    """Modification time of ``path`` in milliseconds since the epoch."""
    return os.stat(path).st_mtime_ns // 1_000_000


def set_local_last_modified(path, millis):
    """Set the mtime of ``path``; failures are logged, not raised."""
    if millis is None:
        return False
    nanos = millis * 1_000_000
    try:
        os.utime(path, ns=(nanos, nanos))
    except OSError:
        logger.warning(
            "Could not change the last modified date of file %s to %d",
            path,
            millis,
            exc_info=True,
        )
        return False
    return True


def _is_writable(path):
    return os.access(path, os.W_OK)


def create_writable_directory(directory):
    if os.path.exists(directory):
        if not os.path.isdir(directory):
            raise PreconditionError(
                f"The file {directory} already exists and is not a directory."
            )
        if not _is_writable(directory):
            raise PreconditionError(f"The directory {directory} is not writable.")
        return
    try:
        os.makedirs(directory)
    except OSError as e:
        raise PreconditionError(
            f"The directory {directory} could not be created."
        ) from e


def check_destination_file(destination):
    """Make sure a file can be written at ``destination``."""
    if os.path.exists(destination):
        if os.path.isdir(destination):
            raise PreconditionError(
                f"The file {destination} already exists and is a directory."
            )
        if not _is_writable(destination):
            raise PreconditionError(f"The file {destination} is not writable.")
    else:
        create_writable_directory(os.path.dirname(os.path.abspath(destination)))


def get_metadata(client, s3_uri, policy=DEFAULT_POLICY):
    """Return the S3File of ``s3_uri``, raise S3NotFoundError if missing."""
    if s3_uri.is_local:
        path = s3_uri.local_path
        if not os.path.isfile(path):
            raise S3NotFoundError(f"The file {path} doesn't exist.")
        return S3File(
            s3_uri,
            size=os.path.getsize(path),
            last_modified=local_last_modified(path),
        )
    response = policy.call(client, client.head_object, s3_uri.bucket, s3_uri.key)
    if response is None:
        raise S3NotFoundError(f"{s3_uri} doesn't exist.")
    return S3File.from_metadata(s3_uri, response)


def get_last_modified(client, s3_uri, policy=DEFAULT_POLICY):
    return get_metadata(client, s3_uri, policy).last_modified


def is_outdated(client, s3_uri, local_path, policy=DEFAULT_POLICY):
    """True if the local copy is missing or older than the S3 copy."""
    if s3_uri is None or local_path is None:
        return False
    if not os.path.exists(local_path):
        return True
    remote_last_modified = get_last_modified(client, s3_uri, policy)
    if remote_last_modified is None:
        return False
    return local_last_modified(local_path) < remote_last_modified


def _default_file_mode():
    # os.umask can only be read by setting it
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _stream_to_file(stream, destination):
    """Write ``stream`` next to ``destination`` then rename it into place."""
    target_dir = os.path.dirname(os.path.abspath(destination))
    fd, tmp_path = tempfile.mkstemp(dir=target_dir, suffix=".download.tmp")
    try:
        with os.fdopen(fd, "wb") as fp:
            shutil.copyfileobj(stream, fp)
        # mkstemp creates the file owner-only
        os.chmod(tmp_path, _default_file_mode())
        os.replace(tmp_path, destination)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


def _fetch(client, s3_uri, destination, policy):
    response = policy.call(client, client.get_object, s3_uri.bucket, s3_uri.key)
    s3_file = S3File.from_metadata(s3_uri, response)
    s3_file.local_file = destination

    logger.debug("Downloading %s to %s", s3_uri, destination)
    body = response["Body"]
    try:
        _stream_to_file(body, destination)
    finally:
        body.close()
    return s3_file


def _copy_local(s3_uri, destination):
    source = s3_uri.local_path
    if not os.path.isfile(source):
        raise S3NotFoundError(f"The file {source} doesn't exist.")
    logger.debug("Copying %s to %s", source, destination)
    s3_file = S3File(
        s3_uri,
        size=os.path.getsize(source),
        last_modified=local_last_modified(source),
        local_file=destination,
    )
    with open(source, "rb") as stream:
        _stream_to_file(stream, destination)
    return s3_file


def _matching_uris(client, s3_uri, policy):
    if s3_uri.is_local:
        parent = get_parent_uri(s3_uri)
        pattern = to_pattern(get_filename(s3_uri))
        directory = parent.local_path
        if not os.path.isdir(directory):
            return []
        return [
            parent.with_key(os.path.join(directory, name))
            for name in sorted(os.listdir(directory))
            if pattern.match(name) and os.path.isfile(os.path.join(directory, name))
        ]
    return [
        s3_file.s3_uri
        for _key, s3_file in sorted(ls(client, s3_uri, policy=policy).files.items())
    ]


def _check_bucket(client, s3_uri, policy):
    if s3_uri.is_local:
        return
    if not policy.call(client, client.bucket_exists, s3_uri.bucket):
        raise S3NotFoundError(f"Bucket {s3_uri.bucket} doesn't exist.")


def download(client, source_uri, destination, force=False, policy=DEFAULT_POLICY):
    """Download ``source_uri`` to the local path ``destination``.

    * a key ending in ``/`` is a directory, which is not supported;
    * a ``*`` pattern downloads every matching file into the
      ``destination`` directory;
    * a single object goes to ``destination``, or into it when it is an
      existing directory.

    Unless ``force`` is set, existing local copies that are not older than
    the S3 copy are left alone. ``file://`` sources are copied from disk.
    Returns an S3List of the files actually transferred.
    """
    s3_list = S3List()
    start = time.monotonic()

    filename = get_filename(source_uri)
    if not filename:
        create_writable_directory(destination)
        logger.error("Download of the directory %s is not supported", source_uri)
        raise UnsupportedOperationError(
            f"Can not download {source_uri}: downloading a directory is not supported."
        )

    if is_pattern(filename):
        create_writable_directory(destination)
        _check_bucket(client, source_uri, policy)
        for match_uri in _matching_uris(client, source_uri, policy):
            s3_list.put_all(
                download(
                    client,
                    match_uri,
                    os.path.join(destination, get_filename(match_uri)),
                    force=force,
                    policy=policy,
                )
            )
    else:
        if os.path.isdir(destination):
            destination = os.path.join(destination, filename)
        check_destination_file(destination)

        if not force and not is_outdated(client, source_uri, destination, policy):
            logger.debug("%s is up to date, not downloading %s", destination, source_uri)
        else:
            if source_uri.is_local:
                s3_file = _copy_local(source_uri, destination)
            else:
                _check_bucket(client, source_uri, policy)
                s3_file = _fetch(client, source_uri, destination, policy)
            set_local_last_modified(destination, s3_file.last_modified)
            s3_list.put_file(s3_file)

    s3_list.execution_time = int((time.monotonic() - start) * 1000)
    return s3_list
