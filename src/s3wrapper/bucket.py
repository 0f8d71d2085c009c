"""Bucket lifecycle and ACL helpers."""

from s3wrapper.exceptions import BucketAlreadyExistsError
from s3wrapper.retry import DEFAULT_POLICY

import logging


logger = logging.getLogger(__name__)

ALL_USERS_URI = "http://acs.amazonaws.com/groups/global/AllUsers"
READ_PERMISSIONS = frozenset({"READ", "FULL_CONTROL"})


def is_public(acl):
    """True if an ACL response grants read access to everyone."""
    if not acl:
        return False
    for grant in acl.get("Grants", []):
        grantee = grant.get("Grantee", {})
        if grantee.get("Type") == "Group" and grantee.get("URI") == ALL_USERS_URI:
            if grant.get("Permission") in READ_PERMISSIONS:
                return True
    return False


def bucket_exists(client, bucket, policy=DEFAULT_POLICY):
    return policy.call(client, client.bucket_exists, bucket)


def create_bucket(client, bucket, public=False, policy=DEFAULT_POLICY):
    bucket = bucket.strip() if bucket else bucket
    if not bucket:
        raise ValueError("Can not create bucket: bucket name is empty")
    if bucket_exists(client, bucket, policy):
        raise BucketAlreadyExistsError(f"Bucket {bucket} already exists.")
    logger.info("Creating bucket %s", bucket)
    policy.call(
        client, client.create_bucket, bucket, acl="public-read" if public else None
    )


def is_bucket_public(client, bucket, policy=DEFAULT_POLICY):
    if not bucket or not bucket_exists(client, bucket, policy):
        return False
    return is_public(policy.call(client, client.get_bucket_acl, bucket))


def is_object_public(client, s3_uri, policy=DEFAULT_POLICY):
    return is_public(
        policy.call(client, client.get_object_acl, s3_uri.bucket, s3_uri.key)
    )
