from pydantic import BaseModel, Field, ConfigDict
from typing import Any, Dict, List, Optional
from enum import Enum

from pantry_api.models.document import Document


class ProductCategory(str, Enum):
    """
    Fixed category labels offered by the product form.
    """

    BEVERAGES = "Beverages"
    DAIRY_PRODUCTS = "Dairy Products"
    FRUITS = "Fruits"
    VEGETABLES = "Vegetables"
    MEAT_AND_POULTRY = "Meat and Poultry"
    SEAFOOD = "Seafood"
    BAKERY_PRODUCTS = "Bakery Products"
    GRAINS_AND_CEREALS = "Grains and Cereals"
    SNACKS = "Snacks"
    CONDIMENTS_AND_SAUCES = "Condiments and Sauces"
    OTHERS = "Others"


class ProductUnit(str, Enum):
    KILOGRAM = "Kilogram (kg)"
    GRAM = "Gram (g)"
    POUND = "Pound (lb)"
    LITER = "Liter (L)"
    MILLILITER = "Milliliter (mL)"
    EACH = "Each (ea)"
    PACK = "Pack"


class Product(BaseModel):
    """
    Core product fields, stored verbatim as the product document.
    """

    name: str = Field(min_length=1)  # Product display name, used by search
    category: ProductCategory
    price: float = Field(ge=0, allow_inf_nan=False)  # Unit price
    quantity: int = Field(gt=0)  # Units in stock; zero stock means no document
    unit: ProductUnit
    image_url: Optional[str] = Field(default=None, alias="imageUrl")  # Opaque, never fetched

    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document_fields(self) -> Dict[str, Any]:
        """
        Fields as written to the store: JSON-ready, camelCase image key, and
        no imageUrl key at all when no image was given.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProductCreate(Product):
    """
    Fields a client needs to provide to create a product.
    """

    pass


class ProductUpdate(Product):
    """
    Full replacement field set for an existing product.

    Every field is required; an edit never merges with the stored document.
    """

    pass


class ProductResponse(Product):
    """
    All product fields plus the store-generated id.
    """

    id: str

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @classmethod
    def from_document(cls, document: Document) -> "ProductResponse":
        return cls.model_validate({**document.fields, "id": document.id})


class ProductList(BaseModel):
    """
    Response model for product listing endpoints.
    """

    items: List[ProductResponse]

    model_config = ConfigDict(extra="forbid")


class ProductStats(BaseModel):
    """
    Dashboard totals computed over the whole catalogue.
    """

    product_count: int = 0
    total_units: int = 0
    total_value: float = 0.0  # sum of price * quantity
    categories: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")
