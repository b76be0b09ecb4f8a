"""Service layer: business operations over the record and blob stores."""

from filehost_api.db_layer.file_service import FileService

__all__ = ["FileService"]
