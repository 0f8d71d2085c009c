from s3wrapper.retry import RetryPolicy

import io
import os
import ZConfig


SCHEMA_PATH = os.path.join(os.path.dirname(__file__), "schema.xml")

_ADDRESSING_STYLES = ("auto", "path", "virtual")


def _load_schema():
    with open(SCHEMA_PATH) as fp:
        return ZConfig.loadSchemaFile(fp)


class S3WrapperFactory:
    """Builds the S3 client, retry policy and bulk transfer from a ZConfig section."""

    def __init__(self, config):
        if config.s3_addressing_style not in _ADDRESSING_STYLES:
            raise ValueError(
                f"s3-addressing-style must be one of {', '.join(_ADDRESSING_STYLES)}, "
                f"got {config.s3_addressing_style!r}"
            )
        self.config = config

    def open(self):
        from s3wrapper.s3client import S3Client

        config = self.config
        return S3Client(
            region_name=config.s3_region,
            endpoint_url=config.s3_endpoint_url,
            aws_access_key_id=config.s3_access_key,
            aws_secret_access_key=config.s3_secret_key,
            use_ssl=config.s3_use_ssl,
            addressing_style=config.s3_addressing_style,
            connect_timeout=config.connect_timeout,
            read_timeout=config.read_timeout,
        )

    def retry_policy(self):
        return RetryPolicy(attempts=self.config.retry_attempts)

    def bulk_transfer(self, s3_client):
        from s3wrapper.transfer import BulkTransfer

        return BulkTransfer(
            s3_client,
            multipart_threshold=self.config.multipart_threshold,
            multipart_chunksize=self.config.multipart_chunksize,
        )


def load_config(path):
    with open(path) as fp:
        config, _handler = ZConfig.loadConfigFile(_load_schema(), fp)
    return S3WrapperFactory(config)


def load_config_string(text):
    config, _handler = ZConfig.loadConfigFile(_load_schema(), io.StringIO(text))
    return S3WrapperFactory(config)
