"""Entity kinds known to the search subsystem."""

from enum import Enum


class EntityKind(str, Enum):
    """Category of domain object a document represents.

    The value is what gets indexed in the document ``type`` field.
    """

    USER = "user"
    API = "api"
    APPLICATION = "application"
    PAGE = "page"
