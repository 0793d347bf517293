"""
Product Data Models

Shared product and page models used by the filtering strategies, the data
sources and the API layer. Products are immutable once fetched.
"""

from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Product(BaseModel):
    """Single catalog product"""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    category: str
    price: float = Field(ge=0)
    description: str = ""
    # Wire name is imageUrl; the original document store used imgUrl
    image_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("image_url", "imageUrl", "imgUrl"),
        serialization_alias="imageUrl",
    )


class PageResult(BaseModel):
    """
    One page of filtered products.

    Attributes:
        items: Products on the requested page (len <= page_size)
        total_items: Size of the filtered collection before pagination
    """

    model_config = ConfigDict(frozen=True)

    items: List[Product] = Field(default_factory=list)
    total_items: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("total_items", "totalItems"),
        serialization_alias="totalItems",
    )


# Field keys accepted by filters -> Product attribute name
PRODUCT_FIELD_KEYS: Dict[str, str] = {
    "id": "id",
    "name": "name",
    "category": "category",
    "price": "price",
    "description": "description",
    "image_url": "image_url",
    "imageUrl": "image_url",
    "imgUrl": "image_url",
}

NUMERIC_FIELDS = frozenset({"id", "price"})

# Fields covered by free-text search
SEARCH_FIELDS = ("name", "category", "description")


def resolve_field_name(field_key: str) -> Optional[str]:
    """
    Map a filter field key onto a Product attribute name.

    Returns:
        Attribute name, or None when the key names no product field
    """
    return PRODUCT_FIELD_KEYS.get(field_key)


class QueryResponse(BaseModel):
    """Data source answer to a remote query payload"""

    products: List[Product] = Field(
        default_factory=list,
        validation_alias=AliasChoices("products", "items"),
    )
    total_items: int = Field(
        default=0,
        validation_alias=AliasChoices("total_items", "totalItems"),
        serialization_alias="totalItems",
    )
