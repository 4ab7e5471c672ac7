"""
ID Handler module for document ids.
"""
from typing import Any
from bson import ObjectId


class IdHandler:
    """
    Documents written by this service use string ids. Older documents may
    still hold ObjectIds, in `_id` or in reference fields; they are handed to
    the domain layer as strings.
    """

    @staticmethod
    def format_object_ids(data: Any) -> Any:
        """
        Replace every ObjectId in a document, a list of documents or any nested
        value with its string form.

        Args:
            data: Document, list of documents or plain value as read from MongoDB

        Returns:
            The same structure without ObjectIds
        """
        if isinstance(data, ObjectId):
            return str(data)
        if isinstance(data, dict):
            return {key: IdHandler.format_object_ids(value) for key, value in data.items()}
        if isinstance(data, list):
            return [IdHandler.format_object_ids(value) for value in data]
        return data

    @staticmethod
    def generate_id() -> str:
        """Id for a document created without an explicit one."""
        return str(ObjectId())
