from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Literal
from datetime import datetime


class ProductCreate(BaseModel):
    site_id: Optional[int] = Field(None, description="Owning site; defaults to the store's site")
    platform_category_id: Optional[int] = Field(None, description="Platform category id")
    name: str = Field(..., min_length=1, max_length=255, description="Product name")
    description: Optional[str] = Field(None, description="Product description")
    type: int = Field(default=0, ge=0, description="Product type")
    price: int = Field(default=0, ge=0, description="Price in whole currency units")
    member_price: Optional[int] = Field(None, ge=0, description="Member price")
    supply_status: int = Field(default=0, ge=0)
    inventory: int = Field(default=0, ge=0, description="Initial denormalized inventory")
    release_at: Optional[datetime] = None
    offshelf_at: Optional[datetime] = None
    scheduled_release_time: Optional[datetime] = None
    scheduled_offshelf_time: Optional[datetime] = None
    auto_offshelf_soldout: bool = False
    only_member: bool = False
    status: int = Field(default=1, ge=0, description="0 inactive, 1 active, 2 draft")


class ProductUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # no inventory here: stock changes go through InventoryMutator
    platform_category_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    type: Optional[int] = Field(None, ge=0)
    price: Optional[int] = Field(None, ge=0)
    member_price: Optional[int] = Field(None, ge=0)
    supply_status: Optional[int] = Field(None, ge=0)
    release_at: Optional[datetime] = None
    offshelf_at: Optional[datetime] = None
    scheduled_release_time: Optional[datetime] = None
    scheduled_offshelf_time: Optional[datetime] = None
    auto_offshelf_soldout: Optional[bool] = None
    only_member: Optional[bool] = None
    status: Optional[int] = Field(None, ge=0)


class ProductFilters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, description="Substring match on product name")
    status: Optional[int] = Field(None, ge=0)
    category_id: Optional[int] = Field(None, description="Site category the product is linked to")
    platform_category_id: Optional[int] = None
    inventory_status: Optional[Literal["normal", "none", "partial"]] = Field(
        None,
        description="normal: inventory > 0; none: inventory <= 0; "
                    "partial: inventory > 0 with at least one main spec at 0",
    )


class ProductResponse(BaseModel):
    product_id: int
    site_id: int
    platform_category_id: Optional[int] = None
    name: str
    description: Optional[str] = None
    type: int
    price: int
    member_price: Optional[int] = None
    supply_status: int
    inventory: int
    release_at: Optional[datetime] = None
    offshelf_at: Optional[datetime] = None
    scheduled_release_time: Optional[datetime] = None
    scheduled_offshelf_time: Optional[datetime] = None
    auto_offshelf_soldout: bool
    only_member: bool
    status: int
    created_at: datetime
    updated_at: datetime
    created_by: int
    updated_by: int
    
    class Config:
        from_attributes = True


class ProductListResponse(BaseModel):
    products: List[ProductResponse]
    total: int
    page: int
    page_size: int
    has_next: bool
