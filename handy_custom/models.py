"""
Pydantic data models for filter state and admin-ajax payloads
"""

from pydantic import BaseModel, Field, field_validator, ConfigDict
from typing import List, Optional, Dict, Any

from .constants import CONTENT_TYPES, FILTER_ACTIONS, DEFAULT_DISPLAY_MODE


class FilterOption(BaseModel):
    """One (slug, name) term offered by a taxonomy select"""

    slug: str
    name: str

    model_config = ConfigDict(extra='ignore')


class ContextBoundary(BaseModel):
    """Category/subcategory scope baked into the page at render time"""

    context_category: str = ''
    context_subcategory: str = ''

    model_config = ConfigDict(frozen=True)

    def as_form(self) -> Dict[str, str]:
        return {
            'context_category': self.context_category,
            'context_subcategory': self.context_subcategory,
        }


class RequestContext(BaseModel):
    """
    Everything one content refresh needs, captured when it is scheduled.

    The cascade step reads last_changed from here rather than from controller
    state, so a later change event cannot affect an earlier round-trip.
    """

    content_type: str
    generation: int
    filters: Dict[str, str] = Field(default_factory=dict)
    boundary: ContextBoundary = Field(default_factory=ContextBoundary)
    display_mode: Optional[str] = None
    last_changed: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @field_validator('content_type')
    @classmethod
    def validate_content_type(cls, v):
        if v not in CONTENT_TYPES:
            raise ValueError(f'Unknown content type: {v}')
        return v

    @property
    def action(self) -> str:
        return FILTER_ACTIONS[self.content_type]

    def form_data(self, nonce: str) -> Dict[str, str]:
        """URL-encoded body for admin-ajax.php"""
        data = {'action': self.action, 'nonce': nonce}
        if self.content_type == 'products':
            data['display'] = self.display_mode or DEFAULT_DISPLAY_MODE
        data.update({k: v for k, v in self.filters.items() if v})
        data.update(self.boundary.as_form())
        return data


class FilterResponseData(BaseModel):
    html: str
    updated_filter_options: Optional[Dict[str, List[FilterOption]]] = None

    model_config = ConfigDict(extra='allow')


class FilterResponse(BaseModel):
    """Validated successful filter_products / filter_recipes response"""

    success: bool
    data: FilterResponseData


class ToggleResponseData(BaseModel):
    new_icon: str
    new_title: str
    new_status: str

    @field_validator('new_status', mode='before')
    @classmethod
    def coerce_status(cls, v):
        return str(v)


class LocalizedConfig(BaseModel):
    """Values printed by wp_localize_script for the filter scripts"""

    ajax_url: Optional[str] = None
    nonce: str = ''
    debug: bool = False
    raw: Dict[str, Any] = Field(default_factory=dict)


class CascadeResult(BaseModel):
    """What a cascade pass did to the sibling selects"""

    updated: List[str] = Field(default_factory=list)
    skipped: List[str] = Field(default_factory=list)
    missing: List[str] = Field(default_factory=list)
    cleared: List[str] = Field(default_factory=list)


class RefreshResult(BaseModel):
    """Outcome of one content refresh"""

    content_type: str
    generation: int
    applied: bool = False
    stale: bool = False
    error: Optional[str] = None
    cascade: Optional[CascadeResult] = None

    @property
    def ok(self) -> bool:
        return self.applied and self.error is None
