"""Upload local files and directory trees to S3."""

from s3wrapper.bucket import is_bucket_public
from s3wrapper.download import local_last_modified
from s3wrapper.exceptions import PreconditionError
from s3wrapper.exceptions import S3NotFoundError
from s3wrapper.listing import S3File
from s3wrapper.listing import S3List
from s3wrapper.listing import USER_METADATA_LAST_MODIFIED_KEY
from s3wrapper.retry import DEFAULT_POLICY
from s3wrapper.transfer import BulkTransfer
from s3wrapper.uri import as_directory_key
from s3wrapper.uri import get_child_uri
from s3wrapper.uri import get_filename

import logging
import os
import time


logger = logging.getLogger(__name__)


def upload(client, source, destination_uri, transfer=None, policy=DEFAULT_POLICY):
    """Upload the local file or directory ``source`` to ``destination_uri``.

    A directory is uploaded recursively into
    ``destination_uri/<directory name>/``. A file sent to a directory key
    keeps its own name. Each object gets a ``lastmodified`` user metadata
    entry holding the local mtime, so that staleness checks compare content
    age rather than upload time. Objects are public-read when the bucket is
    public. Returns an S3List of the uploaded files.
    """
    source = os.path.normpath(source)
    if not os.path.isdir(source) and not os.path.isfile(source):
        raise PreconditionError(
            f"Can not upload the file '{source}', it's not a normal file."
        )
    if destination_uri.is_local:
        raise PreconditionError(f"Can not upload to the local URI {destination_uri}.")

    bucket = destination_uri.bucket
    if not policy.call(client, client.bucket_exists, bucket):
        raise S3NotFoundError(f"Bucket {bucket} doesn't exist.")
    public = is_bucket_public(client, bucket, policy)

    own_transfer = transfer is None
    if own_transfer:
        transfer = BulkTransfer(client)
    start = time.monotonic()
    try:
        s3_list = _upload(client, transfer, source, destination_uri, public, policy)
    finally:
        if own_transfer:
            transfer.shutdown()
    s3_list.execution_time = int((time.monotonic() - start) * 1000)
    return s3_list


def _upload(client, transfer, source, destination_uri, public, policy):
    s3_list = S3List()

    if os.path.isdir(source):
        directory_uri = destination_uri.with_key(
            as_directory_key(destination_uri.key) + os.path.basename(source) + "/"
        )
        for name in sorted(os.listdir(source)):
            s3_list.put_all(
                _upload(
                    client,
                    transfer,
                    os.path.join(source, name),
                    directory_uri,
                    public,
                    policy,
                )
            )

    elif os.path.isfile(source):
        if get_filename(destination_uri) is None:
            destination_uri = get_child_uri(destination_uri, os.path.basename(source))

        last_modified = local_last_modified(source)
        metadata = {USER_METADATA_LAST_MODIFIED_KEY: str(last_modified)}

        logger.debug(
            "Uploading file '%s' (%d bytes) to '%s'",
            source,
            os.path.getsize(source),
            destination_uri,
        )
        policy.call(
            client,
            transfer.upload_and_wait,
            source,
            destination_uri.bucket,
            destination_uri.key,
            public=public,
            metadata=metadata,
        )
        logger.debug("Upload of '%s' completed", source)

        s3_list.put_file(
            S3File(
                destination_uri,
                size=os.path.getsize(source),
                last_modified=last_modified,
                local_file=source,
            )
        )

    else:
        raise PreconditionError(
            f"Can not upload the file '{source}', it's not a normal file."
        )

    return s3_list
