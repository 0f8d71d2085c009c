from s3wrapper.download import download
from s3wrapper.download import get_last_modified
from s3wrapper.download import is_outdated
from s3wrapper.download import local_last_modified
from s3wrapper.exceptions import PreconditionError
from s3wrapper.interfaces import IFileWrapper
from s3wrapper.listing import extension_filter
from s3wrapper.listing import ls
from s3wrapper.retry import DEFAULT_POLICY
from s3wrapper.upload import upload
from s3wrapper.uri import as_directory_key
from s3wrapper.uri import get_child_uri
from s3wrapper.uri import get_filename
from s3wrapper.uri import get_local_child
from s3wrapper.uri import get_local_parent
from s3wrapper.uri import get_parent_uri
from s3wrapper.uri import is_directory
from s3wrapper.uri import relative_key
from s3wrapper.uri import S3URI
from s3wrapper.uri import SEPARATOR
from zope.interface import implementer

import logging
import os


logger = logging.getLogger(__name__)


@implementer(IFileWrapper)
class FileWrapper:
    """A path on S3, on local disk, or on both.

    ``s3_uri`` may also be a ``file://`` URI, in which case "downloading"
    copies from that local path. Operations look at which of the two
    locators are set; a missing one makes remote operations a no-op.

    ``downloaded`` and ``uploaded`` record whether bytes were actually
    transferred through this wrapper. A downloaded local file is scratch
    space that :meth:`cleanup` may delete.
    """

    def __init__(self, s3_uri=None, local_file=None):
        if isinstance(s3_uri, str):
            s3_uri = S3URI.parse(s3_uri)
        if s3_uri is None and local_file is None:
            raise ValueError("A FileWrapper needs an S3 URI, a local file, or both")
        self.s3_uri = s3_uri
        self.local_file = os.path.normpath(local_file) if local_file is not None else None
        self.downloaded = False
        self.uploaded = False

    def __repr__(self):
        return f"<FileWrapper s3_uri={self._uri_str()} local_file={self.local_file!r}>"

    def __eq__(self, other):
        if not isinstance(other, FileWrapper):
            return NotImplemented
        return (self.s3_uri, self.local_file) == (other.s3_uri, other.local_file)

    def __hash__(self):
        return hash((self.s3_uri, self.local_file))

    def _uri_str(self):
        return str(self.s3_uri) if self.s3_uri is not None else None

    def _is_remote(self, client):
        return client is not None and self.s3_uri is not None and not self.s3_uri.is_local

    # -- Navigation --

    def parent(self):
        return FileWrapper(get_parent_uri(self.s3_uri), get_local_parent(self.local_file))

    def child(self, name):
        return FileWrapper(
            get_child_uri(self.s3_uri, name),
            get_local_child(self.local_file, name.rstrip(SEPARATOR)),
        )

    def is_directory(self):
        if self.s3_uri is not None and not self.s3_uri.is_local:
            return is_directory(self.s3_uri)
        path = self.s3_uri.local_path if self.s3_uri is not None else self.local_file
        return os.path.isdir(path)

    @property
    def filename(self):
        if self.s3_uri is not None:
            return get_filename(self.s3_uri)
        return os.path.basename(self.local_file) or None

    def exists(self, client=None, policy=DEFAULT_POLICY):
        if self._is_remote(client):
            bucket, key = self.s3_uri.bucket, self.s3_uri.key
            if key and not is_directory(self.s3_uri):
                return policy.call(client, client.head_object, bucket, key) is not None
            page = policy.call(client, client.list_objects, bucket, key, max_keys=1)
            return bool(page.get("KeyCount") or page.get("Contents"))
        if self.s3_uri is not None and self.s3_uri.is_local:
            return os.path.exists(self.s3_uri.local_path)
        return self.local_file is not None and os.path.exists(self.local_file)

    def get_last_modified(self, client=None, policy=DEFAULT_POLICY):
        """Last modification of the S3 copy, or of the local file, in ms."""
        if self._is_remote(client) or (
            self.s3_uri is not None and self.s3_uri.is_local
        ):
            return get_last_modified(client, self.s3_uri, policy)
        if self.local_file is not None and os.path.exists(self.local_file):
            return local_last_modified(self.local_file)
        return None

    # -- Synchronisation --

    def is_outdated(self, client=None, policy=DEFAULT_POLICY):
        if self.s3_uri is None or self.local_file is None:
            return False
        if not self.s3_uri.is_local and client is None:
            return False
        return is_outdated(client, self.s3_uri, self.local_file, policy)

    def download(self, client=None, force=False, policy=DEFAULT_POLICY):
        """Download the S3 copy to ``local_file`` and return ``local_file``.

        Nothing is transferred when the local copy is up to date, unless
        ``force`` is set.
        """
        if self.s3_uri is None or self.local_file is None:
            return self.local_file
        if not self.s3_uri.is_local and client is None:
            return self.local_file
        s3_list = download(client, self.s3_uri, self.local_file, force=force, policy=policy)
        if s3_list.files:
            self.downloaded = True
        return self.local_file

    def upload(self, client, transfer=None, policy=DEFAULT_POLICY):
        if not self._is_remote(client) or self.local_file is None:
            return None
        s3_list = upload(client, self.local_file, self.s3_uri, transfer, policy)
        if s3_list.files:
            self.uploaded = True
        return s3_list

    def cleanup(self):
        """Delete the local file if it was only created by a download."""
        if not self.downloaded or self.local_file is None:
            return False
        if not os.path.isfile(self.local_file):
            return False
        logger.debug("Deleting downloaded file %s", self.local_file)
        os.remove(self.local_file)
        return True

    # -- Listing --

    def list_files(
        self,
        client=None,
        filename_filter=None,
        path_filter=None,
        recursive=False,
        policy=DEFAULT_POLICY,
    ):
        """Return the wrappers of the entries in this directory.

        With a client and an S3 URI, S3 is listed; the children get a
        local path relative to ``local_file``. Otherwise the local
        directory is listed. Recursive S3 listings contain files only,
        recursive local listings also contain the directories.
        """
        if self._is_remote(client):
            return self._list_s3_files(
                client, filename_filter, path_filter, recursive, policy
            )
        return self._list_local_files(filename_filter, path_filter, recursive)

    def list_files_by_extension(
        self, client=None, extensions=(), recursive=False, policy=DEFAULT_POLICY
    ):
        return self.list_files(
            client,
            filename_filter=extension_filter(extensions),
            recursive=recursive,
            policy=policy,
        )

    def _list_s3_files(self, client, filename_filter, path_filter, recursive, policy):
        s3_list = ls(
            client,
            self.s3_uri,
            filename_filter=filename_filter,
            path_filter=path_filter,
            recursive=recursive,
            policy=policy,
        )
        base_key = self.s3_uri.key
        if not is_directory(self.s3_uri):
            base_key = get_parent_uri(self.s3_uri).key

        children = []
        for entries in (s3_list.dirs, s3_list.files):
            for key in sorted(entries):
                s3_uri = entries[key].s3_uri
                relative = relative_key(key, base_key).rstrip(SEPARATOR)
                children.append(
                    FileWrapper(s3_uri, get_local_child(self.local_file, relative))
                )
        return children

    def _list_local_files(self, filename_filter, path_filter, recursive):
        if self.local_file is None:
            raise PreconditionError(f"{self!r} has no local file to list")
        if not os.path.isdir(self.local_file):
            return []

        dirs = []
        files = []
        for parent, child_uri, entry in _walk(self.local_file, self.s3_uri, recursive):
            if filename_filter is not None:
                selected = filename_filter(parent, entry.name)
            elif path_filter is not None:
                selected = path_filter(entry.path)
            else:
                selected = True
            if selected:
                wrapper = FileWrapper(child_uri, entry.path)
                (dirs if entry.is_dir() else files).append(wrapper)

        dirs.sort(key=lambda wrapper: wrapper.local_file)
        files.sort(key=lambda wrapper: wrapper.local_file)
        return dirs + files


def _walk(directory, s3_uri, recursive):
    """Yield ``(directory, child s3 uri, DirEntry)`` for a local tree.

    Directories are descended into whether or not the caller keeps them.
    Symlinks are listed but not followed.
    """
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda entry: entry.name)
    for entry in entries:
        if entry.is_dir():
            child_uri = get_child_uri(s3_uri, as_directory_key(entry.name))
        else:
            child_uri = get_child_uri(s3_uri, entry.name)
        yield directory, child_uri, entry
        if recursive and entry.is_dir(follow_symlinks=False):
            yield from _walk(entry.path, child_uri, recursive)
