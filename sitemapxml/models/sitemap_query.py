"""Response schema of the remote ``sitemap`` route query."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _QueryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PageInfo(_QueryModel):
    end_cursor: Optional[str] = Field(default=None, alias="endCursor")
    has_next: bool = Field(alias="hasNext")


class FieldValue(_QueryModel):
    value: Optional[str] = None


class TargetField(_QueryModel):
    field: Optional[FieldValue] = None


class EnumValue(_QueryModel):
    """Lookup field whose target item carries a ``value`` field."""

    target_item: Optional[TargetField] = Field(default=None, alias="targetItem")


class TemplateInfo(_QueryModel):
    name: str


class UrlInfo(_QueryModel):
    path: str


class Route(_QueryModel):
    path: str
    template: TemplateInfo
    updated: Optional[FieldValue] = None
    url: UrlInfo
    change_frequency: Optional[EnumValue] = Field(default=None, alias="changeFrequency")

    @property
    def change_frequency_value(self) -> Optional[str]:
        target = self.change_frequency.target_item if self.change_frequency else None
        if target is None or target.field is None:
            return None
        return target.field.value


class RouteResult(_QueryModel):
    route: Route


class Routes(_QueryModel):
    total: int = 0
    page_info: PageInfo = Field(alias="pageInfo")
    results: List[RouteResult] = []


class SiteInfo(_QueryModel):
    routes: Routes


class Site(_QueryModel):
    site_info: SiteInfo = Field(alias="siteInfo")


class SitemapQueryResult(_QueryModel):
    site: Site
