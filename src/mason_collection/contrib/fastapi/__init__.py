"""FastAPI integration for mason-collection."""

from .dependencies import collection_query_params
from .handlers import install_exception_handlers
from .responses import MASON_MEDIA_TYPE, CollectionResponse

__all__: list[str] = [
    # Dependencies
    "collection_query_params",
    # Error handling
    "install_exception_handlers",
    # Responses
    "CollectionResponse",
    "MASON_MEDIA_TYPE",
]
