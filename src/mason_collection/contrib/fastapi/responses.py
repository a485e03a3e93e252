"""Mason JSON response class."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi.encoders import jsonable_encoder
from starlette.responses import JSONResponse

if TYPE_CHECKING:
    from ...collection import CollectionPage

MASON_MEDIA_TYPE = "application/vnd.mason+json"


class CollectionResponse(JSONResponse):
    media_type = MASON_MEDIA_TYPE

    @classmethod
    def from_page(cls, page: CollectionPage, **kwargs: Any) -> CollectionResponse:
        """Build a response from an assembled page's Mason properties."""
        return cls(content=jsonable_encoder(page.to_properties()), **kwargs)
