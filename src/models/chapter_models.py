"""
Pydantic Models for Chapters
Chapter records and the joins that attach content / sub-chapters to them
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class JoinScope(str, Enum):
    """What a join points at"""

    CONTENT = "content"
    CHAPTERS = "chapters"


class JoinType(str, Enum):
    """How the joined item belongs to the chapter"""

    PRIMARY = "primary"
    SELECTED = "selected"


# Flag fields are stored as strings, "1" means on
FLAG_ON = "1"
FLAG_OFF = "0"


class ChapterSave(BaseModel):
    """
    Create / update request for a chapter record

    Field semantics:
    - None: field is left untouched
    - "": field is removed from the stored chapter ($unset)
    - anything else: field is set

    When id is None or "0" a new chapter is created, otherwise the chapter
    matching id (ObjectId or legacy oldId) is updated.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = Field(None, description="ObjectId or legacy oldId")
    name: Optional[str] = None
    description: Optional[str] = None
    abstract: Optional[str] = None
    short_name: Optional[str] = Field(None, alias="shortName")
    gallery_id: Optional[str] = Field(None, alias="galleryId")
    image_id: Optional[str] = Field(None, alias="imageId")
    slide_show_id: Optional[str] = Field(None, alias="slideShowId")
    main_feature: Optional[str] = Field(None, alias="mainFeature")
    inactive: Optional[str] = None
    admin_only: Optional[str] = Field(None, alias="adminOnly")
    display_image: Optional[str] = Field(None, alias="displayImage")
    random_features: Optional[str] = Field(None, alias="randomFeatures")
    show_updated_content: Optional[str] = Field(None, alias="showUpdatedContent")
    lcp_copy_of_chapter: Optional[str] = Field(None, alias="lcpCopyOfChapter")
    lcp_live_updates: Optional[str] = Field(None, alias="lcpLiveUpdates")
    lcp_private_commenting: Optional[str] = Field(None, alias="lcpPrivateCommenting")

    @property
    def is_new(self) -> bool:
        return self.id is None or self.id == "0"

    def stored_fields(self) -> Dict[str, Any]:
        """Provided fields keyed by their stored (camelCase) names"""
        return self.model_dump(by_alias=True, exclude_none=True, exclude={"id"})


class JoinRequest(BaseModel):
    """
    Add or update a join on a chapter

    featured / hide / is_lcp: "1" sets the flag, "0" clears it, "" leaves it.
    lcped_from: the book id the scope was LCPed from; empty clears it.
    """

    scope_id: str = Field(..., min_length=1, description="ObjectId or legacy oldId")
    scope: str = Field(..., description="'content' or 'chapters'")
    join_type: str = Field("", description="'primary' or 'selected'")
    featured: str = ""
    hide: str = ""
    is_lcp: str = ""
    lcped_from: str = ""


class JoinOrderItem(BaseModel):
    """One entry of a reorder request, in the intended position"""

    model_config = ConfigDict(populate_by_name=True)

    scope: str
    scope_id: str = Field(..., alias="scopeId")
