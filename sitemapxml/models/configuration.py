from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

HrefLangMode = Literal["language-and-region", "language-only", "region-only"]


class SitemapConfiguration(BaseModel):
    """Per-request sitemap settings.

    Built once from defaults plus ``SITEMAPXML_*`` overrides and read-only
    afterwards.  Unknown keys are kept as extra attributes so that custom
    plugins can read their own settings from the same object.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    hostname: str = Field(min_length=1)
    languages: List[str] = ["en"]
    default_language: str = "en"
    include_alternate_links: bool = True
    include_x_default: bool = True
    href_lang_mode: HrefLangMode = "language-and-region"
    max_pages_per_sitemap: int = Field(default=0, ge=0)
    bucket_template: str = "Bucket Page"

    @field_validator("languages", mode="before")
    @classmethod
    def _split_languages(cls, value):
        if isinstance(value, str):
            value = value.split("|")
        languages = [lang.strip() for lang in value if lang and lang.strip()]
        if not languages:
            raise ValueError("The list of languages cannot be empty")
        return languages

    @field_validator("include_alternate_links", "include_x_default", mode="before")
    @classmethod
    def _parse_flag(cls, value):
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered not in ("true", "false"):
                raise ValueError(f"Expected 'true' or 'false', got {value!r}")
            return lowered == "true"
        return value

    @field_validator("max_pages_per_sitemap", mode="before")
    @classmethod
    def _parse_page_limit(cls, value):
        if isinstance(value, str):
            value = value.strip()
            if value == "":
                return 0
            if not value.isdigit():
                raise ValueError(f"max_pages_per_sitemap must be a whole number, got {value!r}")
            return int(value)
        return value
