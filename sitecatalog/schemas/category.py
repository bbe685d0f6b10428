from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CategoryCreate(BaseModel):
    site_id: Optional[int] = Field(None, description="Owning site; defaults to the store's site")
    parent_id: Optional[int] = Field(None, description="Parent category on the same shard")
    name: str = Field(..., min_length=1, max_length=255)


class CategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    parent_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)


class ProductCategoryCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    category_id: int = Field(..., ge=1)


class PlatformCategoryCreate(BaseModel):
    category_id: Optional[int] = Field(None, ge=1, description="Explicit id; generated when omitted")
    parent_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=255)
    retail: bool = True
    inquiry: bool = False
    is_sensitive: bool = False
    sensitive_type: Optional[int] = None


class PlatformCategoryUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    parent_id: Optional[int] = None
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    retail: Optional[bool] = None
    inquiry: Optional[bool] = None
    is_sensitive: Optional[bool] = None
    sensitive_type: Optional[int] = None
