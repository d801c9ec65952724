"""
Pytest configuration and fixtures.
"""

import asyncio
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from handy_custom.config import Settings
from handy_custom.page import FilterPage


RECIPES_PAGE = """
<html><body>
<div class="handy-filters" data-content-type="recipes" data-shortcode="filter-recipes"
     data-context-category="seafood">
  <div class="filters-row">
    <div class="filter-group" data-taxonomy="category">
      <label for="filter-recipes-category">Category:</label>
      <select id="filter-recipes-category" name="category" class="filter-select"
              data-content-type="recipes" data-taxonomy="category">
        <option value="">All Category</option>
        <option value="soups">Soups</option>
        <option value="appetizers">Appetizers</option>
      </select>
    </div>
    <div class="filter-group" data-taxonomy="cooking_method">
      <select id="filter-recipes-cooking_method" name="cooking_method" class="filter-select"
              data-content-type="recipes" data-taxonomy="cooking_method">
        <option value="">All Cooking Method</option>
        <option value="grill">Grill</option>
        <option value="fry">Fry</option>
        <option value="bake">Bake</option>
      </select>
    </div>
    <div class="filter-group" data-taxonomy="menu_occasion">
      <select id="filter-recipes-menu_occasion" name="menu_occasion" class="filter-select"
              data-content-type="recipes" data-taxonomy="menu_occasion">
        <option value="">All Menu Occasion</option>
        <option value="dinner">Dinner</option>
        <option value="lunch">Lunch</option>
      </select>
    </div>
  </div>
  <div class="filter-loading" style="display: none;"><p>Updating filters...</p></div>
</div>
<div class="handy-filter-clear-container" data-content-type="recipes">
  <button type="button" class="btn btn-clear-filters-universal" data-content-type="recipes">
    Clear (view all) <i class="fas fa-arrow-right"></i>
  </button>
</div>
<div class="handy-recipes-archive"><div class="recipe-card">Old recipes</div></div>
</body></html>
"""

PRODUCTS_PAGE = """
<html><body>
<div class="handy-filters" data-content-type="products" data-context-category="shrimp"
     data-context-subcategory="breaded">
  <div class="filters-row">
    <div class="filter-group" data-taxonomy="grade">
      <select name="grade" class="filter-select" data-content-type="products">
        <option value="">All Grade</option>
        <option value="premium">Premium</option>
        <option value="select">Select</option>
      </select>
    </div>
    <div class="filter-group" data-taxonomy="market_segment">
      <select name="market_segment" class="filter-select" data-content-type="products">
        <option value="">All Market Segment</option>
        <option value="retail">Retail</option>
        <option value="foodservice">Foodservice</option>
      </select>
    </div>
  </div>
  <div class="clear-row"><button class="btn-clear-filters" data-content-type="products">Clear</button></div>
  <div class="filter-loading" style="display: none;"><p>Updating filters...</p></div>
</div>
<div class="handy-products-archive" data-display-mode="list"><div class="product-card">Old products</div></div>
</body></html>
"""


def ok(html="<div class=\"handy-recipes-archive\"><p>New</p></div>", options=None):
    """Successful admin-ajax payload"""
    data = {"html": html}
    if options is not None:
        data["updated_filter_options"] = options
    return {"success": True, "data": data}


class FakeTransport:
    """
    Stands in for AiohttpTransport.

    Responses are handed out in call order (the last one repeats); an
    exception instance is raised instead of returned. A gate registered for a
    call index holds that call until the test sets it.
    """

    def __init__(self, *responses):
        self.responses = list(responses) or [ok()]
        self.calls = []
        self.gates = {}
        self.closed = False

    def gate(self, index):
        event = asyncio.Event()
        self.gates[index] = event
        return event

    async def __call__(self, url, data, timeout):
        index = len(self.calls)
        self.calls.append({"url": url, "data": dict(data), "timeout": timeout})
        gate = self.gates.get(index)
        if gate is not None:
            await gate.wait()
        response = self.responses[min(index, len(self.responses) - 1)]
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        self.closed = True


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        site_url="https://example.com",
        error_banner_seconds=0.05,
        request_timeout=30.0,
    )


@pytest.fixture
def recipes_page():
    return FilterPage(RECIPES_PAGE, url="https://example.com/recipes/")


@pytest.fixture
def products_page():
    return FilterPage(PRODUCTS_PAGE, url="https://example.com/products/")
