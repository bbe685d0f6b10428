from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class MainSpecCreate(BaseModel):
    product_id: int = Field(..., ge=1, description="Owning product on the same shard")
    name: str = Field(..., min_length=1, max_length=255, description="Variant group name, e.g. a colour")
    img_url: Optional[str] = Field(None, max_length=1024)
    price: int = Field(default=0, ge=0)
    member_price: Optional[int] = Field(None, ge=0)
    supply_status: int = Field(default=0, ge=0)
    inventory: int = Field(default=0, ge=0)


class MainSpecUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    img_url: Optional[str] = Field(None, max_length=1024)
    price: Optional[int] = Field(None, ge=0)
    member_price: Optional[int] = Field(None, ge=0)
    supply_status: Optional[int] = Field(None, ge=0)


class SubSpecCreate(BaseModel):
    main_spec_id: int = Field(..., ge=1, description="Owning main spec on the same shard")
    name: str = Field(..., min_length=1, max_length=255, description="Variant name, e.g. a size")
    price: int = Field(default=0, ge=0)
    member_price: Optional[int] = Field(None, ge=0)
    supply_status: int = Field(default=0, ge=0)
    inventory: int = Field(default=0, ge=0)


class SubSpecUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    price: Optional[int] = Field(None, ge=0)
    member_price: Optional[int] = Field(None, ge=0)
    supply_status: Optional[int] = Field(None, ge=0)
