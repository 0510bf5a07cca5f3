"""
Schemas - Browse Models

Pydantic models for browse options and site context.
"""

from pydantic import BaseModel, Field
from typing import Optional


class SearchRequestOptions(BaseModel):
    """Browse intent: category, brand, on-sale or rule-based page."""
    category_id: Optional[str] = None
    category_path: Optional[str] = None
    brand_id: Optional[str] = None
    catalog_id: Optional[str] = None
    on_sale: bool = False
    rule_based_page: bool = False
    fetch_products: bool = True
    fetch_category_graph: bool = False
    max_category_results: int = Field(default=100, ge=1)
    depth_limit: int = Field(default=0, ge=0)
    separator: str = "."

    @property
    def has_category_id(self) -> bool:
        return bool(self.category_id and self.category_id.strip())

    @property
    def has_category_path(self) -> bool:
        return bool(self.category_path and self.category_path.strip())

    @property
    def has_brand_id(self) -> bool:
        return bool(self.brand_id and self.brand_id.strip())

    @property
    def adds_category_graph(self) -> bool:
        """Category graph requested, or implied by brand browsing without a category."""
        if self.rule_based_page:
            return False
        return self.fetch_category_graph or (
            self.has_brand_id and self.fetch_products and not self.has_category_id
        )


class SiteContext(BaseModel):
    """Site a request is served for."""
    site_id: str
    catalog_id: Optional[str] = None
