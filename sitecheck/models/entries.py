"""Declarative records describing what a batch operation must verify.

Raw dicts coming from test code are first checked with
``assert_object_properties`` so an unknown key fails with its own name, and only
then converted into these models.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from sitecheck.assertions.objects import assert_object_properties

TextOrList = Union[str, list[str]]


class _Entry(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @classmethod
    def accepted_keys(cls) -> list[str]:
        """Key names accepted on raw records (the camelCase aliases)."""
        return [field.alias or name for name, field in cls.model_fields.items()]

    @classmethod
    def from_raw(cls, raw: Any):
        if isinstance(raw, cls):
            return raw
        assert_object_properties(raw, cls.accepted_keys(), strict=False)
        return cls.model_validate(raw)


class HttpRequestEntry(_Entry):
    url: str
    post_parameters: Optional[dict[str, Any]] = Field(default=None, alias="postParameters")
    response_code: Optional[int] = Field(default=None, alias="responseCode")
    is_: Optional[str] = Field(default=None, alias="is")
    contains: Optional[TextOrList] = None
    not_contains: Optional[TextOrList] = Field(default=None, alias="notContains")
    start_with: Optional[TextOrList] = Field(default=None, alias="startWith")
    end_with: Optional[TextOrList] = Field(default=None, alias="endWith")

    @classmethod
    def from_raw(cls, raw: Any) -> "HttpRequestEntry":
        if isinstance(raw, str):
            return cls(url=raw)
        return super().from_raw(raw)

    @property
    def method(self) -> str:
        return "GET" if self.post_parameters is None else "POST"


class BrowserStateSpec(_Entry):
    url: Optional[TextOrList] = None
    title_contains: Optional[TextOrList] = Field(default=None, alias="titleContains")
    ignore_console_errors: Optional[Union[bool, list[str]]] = Field(default=None, alias="ignoreConsoleErrors")

    source_html_starts_with: Optional[str] = Field(default=None, alias="sourceHtmlStartsWith")
    source_html_ends_with: Optional[str] = Field(default=None, alias="sourceHtmlEndsWith")
    source_html_contains: Optional[TextOrList] = Field(default=None, alias="sourceHtmlContains")
    source_html_not_contains: Optional[TextOrList] = Field(default=None, alias="sourceHtmlNotContains")
    source_html_reg_exp: Optional[TextOrList] = Field(default=None, alias="sourceHtmlRegExp")

    loaded_html_starts_with: Optional[str] = Field(default=None, alias="loadedHtmlStartsWith")
    loaded_html_ends_with: Optional[str] = Field(default=None, alias="loadedHtmlEndsWith")
    loaded_html_contains: Optional[TextOrList] = Field(default=None, alias="loadedHtmlContains")
    loaded_html_not_contains: Optional[TextOrList] = Field(default=None, alias="loadedHtmlNotContains")
    loaded_html_reg_exp: Optional[TextOrList] = Field(default=None, alias="loadedHtmlRegExp")

    tabs_count: Optional[int] = Field(default=None, alias="tabsCount")


class UrlLoadEntry(BrowserStateSpec):
    url: str

    @classmethod
    def from_raw(cls, raw: Any) -> "UrlLoadEntry":
        if isinstance(raw, str):
            return cls(url=raw)
        return super().from_raw(raw)

    def state_spec(self) -> BrowserStateSpec:
        """The assertions to run once the entry url has been loaded."""
        return BrowserStateSpec(**self.model_dump())


class RedirectEntry(_Entry):
    url: str
    to: str
    comment: str = ""


class ElementQuery(BaseModel):
    """A DOM node located by html id or by an XPath expression."""

    by: Literal["id", "xpath"]
    value: str

    def describe(self) -> str:
        return f"{self.by}: {self.value}"
