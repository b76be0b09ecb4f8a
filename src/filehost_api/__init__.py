"""
File hosting API.

Authenticated users upload images and videos to a blob store while file
metadata (owner, tags, view count, shareable link) lives in a document store.
"""
