from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class ProductImageCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    img_url: str = Field(..., min_length=1, max_length=1024)
    cover_pic: bool = False


class ProductImageUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    # cover changes go through ProductImageService.set_cover
    img_url: Optional[str] = Field(None, min_length=1, max_length=1024)


class ProductVideoCreate(BaseModel):
    product_id: int = Field(..., ge=1)
    video_url: str = Field(..., min_length=1, max_length=1024)


class ProductVideoUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    video_url: Optional[str] = Field(None, min_length=1, max_length=1024)
