"""
Cascading filter option updates.

After a successful fetch the server sends, per taxonomy, the options that
still lead to results under the current selection. Every sibling select is
rewritten to that list; the select the user just changed is left alone.
"""

import logging
from typing import Dict, List, Mapping, Optional, Union

from .models import CascadeResult, FilterOption
from .page import (
    FilterPage,
    get_select_value,
    has_option,
    replace_options,
    set_select_value,
    update_select_state,
)
from .url_state import UrlState

logger = logging.getLogger(__name__)

OptionList = List[Union[FilterOption, Dict[str, str]]]


def _as_options(terms: Optional[OptionList]) -> List[FilterOption]:
    return [t if isinstance(t, FilterOption) else FilterOption(**t) for t in (terms or [])]


def apply_cascade(
    page: FilterPage,
    url_state: UrlState,
    content_type: str,
    updated_options: Mapping[str, OptionList],
    last_changed: Optional[str] = None,
) -> CascadeResult:
    """
    Rewrite the option lists of a filter group.

    Args:
        page: Document holding the filter group
        url_state: Address bar; invalidated selections are removed from it
        content_type: 'products' or 'recipes'
        updated_options: Taxonomy key -> now-valid options, in server order
        last_changed: Taxonomy the user just changed, never rewritten here

    Returns:
        CascadeResult naming updated, skipped, missing and cleared taxonomies
    """
    result = CascadeResult()
    logger.info(f"Updating {content_type} filter dropdowns for {len(updated_options)} taxonomies")

    container = page.filter_container(content_type)
    if container is None:
        logger.warning(f"No filter container found for content type: {content_type}")
        result.missing.extend(updated_options.keys())
        return result

    for taxonomy_key, terms in updated_options.items():
        if last_changed and taxonomy_key == last_changed:
            logger.info(f"Skipping update for triggering filter: {taxonomy_key}")
            result.skipped.append(taxonomy_key)
            continue

        select = page.find_select(content_type, taxonomy_key)
        if select is None:
            logger.debug(f"No select element found for taxonomy: {taxonomy_key}")
            result.missing.append(taxonomy_key)
            continue

        current_value = get_select_value(select)
        options = _as_options(terms)
        logger.debug(f"Updating {taxonomy_key} filter with {len(options)} options (current: '{current_value}')")

        replace_options(select, page.soup, options)

        if current_value and has_option(select, current_value):
            set_select_value(select, current_value)
            logger.debug(f"Restored selection for {taxonomy_key}: {current_value}")
        else:
            set_select_value(select, '')
            if current_value:
                logger.info(f"Cleared unavailable selection for {taxonomy_key}: {current_value}")
                url_state.set_param(taxonomy_key, '')
                result.cleared.append(taxonomy_key)

        update_select_state(select, get_select_value(select))
        result.updated.append(taxonomy_key)

    page.update_clear_button_visibility(container)
    logger.info(f"Filter dropdowns updated for {content_type}")
    return result
