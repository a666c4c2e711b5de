from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class FilterSelectionModel(BaseModel):
    search_query: str = ""
    sector: str = "All"
    year: Union[int, str, None] = None
    month: Union[int, str, None] = None
    day: Union[int, str] = 1


class ActorModel(BaseModel):
    allowed_sector: str = Field(default="ALL")


class SortConfigModel(BaseModel):
    key: Optional[str] = None
    direction: Literal["asc", "desc"] = "asc"
