from pydantic import BaseModel, ConfigDict, Field


class MetadataRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    url: str = Field(min_length=1, max_length=2048)


class PageMetadata(BaseModel):
    title: str
    description: str = ""
    favicon: str = ""
    url: str
