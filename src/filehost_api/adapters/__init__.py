"""
Adapter layer for the Files API.

Contains the blob storage adapters (local filesystem / S3) selected by
deployment mode.
"""
