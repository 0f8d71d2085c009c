from boto3.s3.transfer import create_transfer_manager
from boto3.s3.transfer import TransferConfig
from s3wrapper.interfaces import IBulkTransfer
from zope.interface import implementer

import logging


logger = logging.getLogger(__name__)

MB = 1024 * 1024

# Files larger than this are sent in parts, must be between 5 MB and 5 GB
DEFAULT_MULTIPART_THRESHOLD = 500 * MB
DEFAULT_MULTIPART_CHUNKSIZE = 100 * MB

PUBLIC_READ_ACL = "public-read"


@implementer(IBulkTransfer)
class BulkTransfer:
    """Multipart uploads through boto3's transfer manager.

    The manager is bound to the client's current boto3 client and is
    rebuilt when :meth:`S3Client.reconnect` replaced it.
    """

    def __init__(
        self,
        s3_client,
        multipart_threshold=DEFAULT_MULTIPART_THRESHOLD,
        multipart_chunksize=DEFAULT_MULTIPART_CHUNKSIZE,
    ):
        self._s3_client = s3_client
        self._config = TransferConfig(
            multipart_threshold=multipart_threshold,
            multipart_chunksize=multipart_chunksize,
        )
        self._manager = None
        self._bound_to = None

    def _transfer_manager(self):
        boto_client = self._s3_client.s3
        if self._manager is None or self._bound_to is not boto_client:
            self.shutdown()
            self._manager = create_transfer_manager(boto_client, self._config)
            self._bound_to = boto_client
        return self._manager

    def upload(self, local_path, bucket, key, public=False, metadata=None):
        extra_args = {}
        if metadata:
            extra_args["Metadata"] = dict(metadata)
        if public:
            extra_args["ACL"] = PUBLIC_READ_ACL
        logger.debug("Starting upload of %s to s3://%s/%s", local_path, bucket, key)
        return self._transfer_manager().upload(
            local_path, bucket, key, extra_args=extra_args or None
        )

    def upload_and_wait(self, local_path, bucket, key, public=False, metadata=None):
        """Upload and block until the transfer completed."""
        return self.upload(local_path, bucket, key, public, metadata).result()

    def shutdown(self):
        manager, self._manager = self._manager, None
        self._bound_to = None
        if manager is None:
            return
        try:
            manager.shutdown()
        except Exception:
            logger.warning("Could not shut down the transfer manager", exc_info=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.shutdown()
