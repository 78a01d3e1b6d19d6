"""
App dictionary API schemas
"""
from typing import Optional

from app.enums import AppCategory
from app.schemas.base import CamelModel


class UpdateCategoryInput(CamelModel):
    category: AppCategory
    auto_suggested: Optional[bool] = None


class AppOut(CamelModel):
    app_id: str
    app_name: str
    category: AppCategory
    auto_suggested: bool


class UpdateCategoryResponse(CamelModel):
    success: bool = True
    data: AppOut
