"""Exceptions for s3wrapper."""


class S3WrapperError(Exception):
    """Base class for all s3wrapper errors."""


class S3NotFoundError(S3WrapperError):
    """The requested object or bucket does not exist.

    Raised distinctly from :class:`S3OperationError` so callers can abort
    instead of retrying. The retry policy never retries it.
    """


class S3OperationError(S3WrapperError):
    """Wraps boto3 ClientError for any S3 failure other than not-found.

    The original error is chained as ``__cause__``.
    """


class PreconditionError(S3WrapperError, OSError):
    """A local source or destination is unusable for the requested transfer."""


class BucketAlreadyExistsError(PreconditionError):
    """Raised by :func:`s3wrapper.bucket.create_bucket`."""


class UnsupportedOperationError(S3WrapperError, NotImplementedError):
    """Downloading a whole S3 "directory" in a single call is not supported."""
