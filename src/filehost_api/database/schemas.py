"""
JSON schema for file record documents.
Documents are validated before they are written to either store.
"""

from typing import Any, Dict

import jsonschema

FILE_COLLECTION = "files"

FILE_RECORD_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "file_id": {"type": "string", "pattern": "^[0-9a-f]{24}$"},
        "owner_id": {"type": "string", "minLength": 1},
        "filename": {"type": "string", "minLength": 1},
        "original_name": {"type": "string"},
        "mime_type": {"type": "string", "minLength": 1},
        "size_bytes": {"type": "integer", "minimum": 0},
        "blob_locator": {"type": "string", "minLength": 1},
        "tags": {
            "type": "array",
            "items": {"type": "string", "minLength": 1, "pattern": "\\S"},
            "uniqueItems": True,
        },
        "shareable_link": {"type": ["string", "null"]},
        "view_count": {"type": "integer", "minimum": 0},
        "created_at": {"type": "string", "format": "date-time"},
    },
    "required": [
        "file_id",
        "owner_id",
        "filename",
        "original_name",
        "mime_type",
        "size_bytes",
        "blob_locator",
        "tags",
        "view_count",
        "created_at",
    ],
}


def validate_file_document(document: Dict[str, Any]) -> None:
    """Validate a file record document against the schema"""
    jsonschema.validate(document, FILE_RECORD_JSON_SCHEMA)


DOCUMENT_VALIDATORS = {
    FILE_COLLECTION: validate_file_document,
}
