from zope.interface import Attribute
from zope.interface import Interface


class IS3Client(Interface):
    """Abstraction over S3-compatible object storage.

    Missing objects and buckets raise ``S3NotFoundError``, other failures
    ``S3OperationError``.
    """

    def head_object(bucket, key):
        """Return metadata dict for an S3 object, or None if not found."""

    def get_object(bucket, key):
        """Return the object response; its ``Body`` streams the content."""

    def put_object(bucket, key, body, metadata, acl):
        """Store ``body`` under ``key`` with optional user metadata."""

    def delete_object(bucket, key):
        """Delete an S3 object."""

    def list_objects(bucket, prefix, delimiter, continuation_token, max_keys):
        """Return one ``list_objects_v2`` page."""

    def bucket_exists(bucket):
        """Return True if the bucket exists."""

    def reconnect():
        """Tear down the connection; the next call opens a new one."""


class IBulkTransfer(Interface):
    """Multipart-capable uploader for large local files."""

    def upload(local_path, bucket, key, public, metadata):
        """Start an upload, return a future whose result() waits for it."""

    def shutdown():
        """Stop the underlying transfer machinery."""


class IFileWrapper(Interface):
    """A path that may live on S3, on local disk, or on both."""

    s3_uri = Attribute("S3URI of the remote copy, or None")
    local_file = Attribute("Local filesystem path, or None")
    downloaded = Attribute("True once the local file was written by a download")
    uploaded = Attribute("True once the local file was sent to S3")

    def parent():
        """Return the wrapper of the parent directory."""

    def child(name):
        """Return the wrapper of ``name`` inside this directory."""

    def list_files(client, filename_filter, path_filter, recursive):
        """Return child wrappers found on S3 or on local disk."""

    def download(client, force):
        """Fetch the S3 copy unless the local copy is up to date."""

    def upload(client, transfer):
        """Send the local copy to S3."""

    def cleanup():
        """Delete the local copy if it only exists because of a download."""
