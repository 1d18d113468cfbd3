from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class FinalUrl(BaseModel):
    """Public URL decision for a single item, written once by the plugin pipeline."""

    url: str = ""
    should_process: bool = True


class SitemapItem(BaseModel):
    """One language variant of a content item."""

    item_path: str  # content-tree path, used as the data set key
    path: str  # candidate public URL path
    last_modified: Optional[datetime] = None
    template: str
    language: str
    final: FinalUrl = Field(default_factory=FinalUrl)


# Keyed by language before inversion, by item path afterwards.
SitemapData = Dict[str, List[SitemapItem]]
