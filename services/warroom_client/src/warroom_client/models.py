from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _BackendModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ChatSummary(_BackendModel):
    id: str | int
    title: str
    created_at: str | None = None
    updated_at: str | None = None
    message_count: int | None = None


class StoredMessage(_BackendModel):
    id: str | int | None = None
    role: str
    content: str
    created_at: str | None = None


class ChatFile(_BackendModel):
    id: str | int
    name: str | None = None
    original_filename: str | None = None
    text_content: str | None = None
    extracted_content: str | None = None
    file_type: str | None = None
    mime_type: str | None = None
    size: int | None = None
    created_at: str | None = None


class ChatDetail(_BackendModel):
    id: str | int
    title: str
    messages: list[StoredMessage] = Field(default_factory=list)
    files: list[ChatFile] = Field(default_factory=list)


class ContextFile(_BackendModel):
    name: str
    mime_type: str | None = Field(
        default=None,
        validation_alias=AliasChoices("mimeType", "mime_type"),
        serialization_alias="mimeType",
    )
    text_content: str = Field(
        validation_alias=AliasChoices("textContent", "text_content"),
        serialization_alias="textContent",
    )


class Agent(_BackendModel):
    id: str | int
    name: str
    description: str = ""
    type: str = ""
    is_active: bool = True


class SearchHit(_BackendModel):
    title: str
    url: str
    snippet: str = ""
    display_url: str | None = Field(
        default=None, validation_alias=AliasChoices("displayUrl", "display_url")
    )


class WebSearchResult(_BackendModel):
    summary: str = ""
    results: list[SearchHit] = Field(default_factory=list)
    raw_response: str = Field(default="", validation_alias=AliasChoices("rawResponse", "raw_response"))


class ScrapedPage(_BackendModel):
    url: str
    title: str = ""
    content: str = ""
    description: str = ""
    scraped_at: str | None = Field(default=None, validation_alias=AliasChoices("scrapedAt", "scraped_at"))
