"""Thin boto3 wrappers for the S3 object operations the blob store needs."""
