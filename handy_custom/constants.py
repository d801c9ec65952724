"""
Shared constants for Handy Custom filters
"""

CONTENT_TYPES = ['products', 'recipes']

# admin-ajax action per content type
FILTER_ACTIONS = {
    'products': 'filter_products',
    'recipes': 'filter_recipes',
}

TOGGLE_FEATURED_ACTION = 'toggle_featured_recipe_status'

# Taxonomy key -> WordPress taxonomy slug
PRODUCT_TAXONOMIES = {
    'category': 'product-category',
    'subcategory': 'product-category',
    'grade': 'grade',
    'market_segment': 'market-segment',
    'cooking_method': 'product-cooking-method',
    'menu_occasion': 'product-menu-occasion',
    'product_type': 'product-type',
    'size': 'size',
}

RECIPE_TAXONOMIES = {
    'category': 'recipe-category',
    'cooking_method': 'recipe-cooking-method',
    'menu_occasion': 'recipe-menu-occasion',
}

TAXONOMIES = {
    'products': PRODUCT_TAXONOMIES,
    'recipes': RECIPE_TAXONOMIES,
}

# Product archive display mode when the container does not say
DEFAULT_DISPLAY_MODE = 'categories'

# Page markup contract
FILTER_CONTAINER_SELECTOR = '.handy-filters'
FILTER_SELECT_SELECTOR = '.handy-filters .filter-select'
CLEAR_BUTTON_SELECTOR = '.btn-clear-filters, .btn-clear-filters-main, .btn-clear-filters-universal'
LEGACY_CLEAR_BUTTON_SELECTOR = '.btn-clear-filters, .btn-clear-filters-main'
LOADING_SELECTOR = '.filter-loading'
ERROR_BANNER_CLASSES = ['handy-filters-error', 'filter-error']
TOGGLE_BUTTON_SELECTOR = '.toggle-featured-status'

ARCHIVE_SELECTORS = {
    'products': '.handy-products-archive',
    'recipes': '.handy-recipes-archive',
}

# Events
CONTENT_UPDATED_EVENT = 'handyCustomContentUpdated'

# wp_localize_script objects the plugin prints on archive/admin pages
LOCALIZED_FILTER_OBJECTS = ['handyCustomFiltersAjax', 'handyCustomAjax', 'handyCustomRecipesAjax']
LOCALIZED_TOGGLE_OBJECT = 'adminRecipeFeaturedToggle'
DEFAULT_AJAX_PATH = '/wp-admin/admin-ajax.php'

# User-visible messages
TRANSPORT_ERROR_MESSAGE = 'Failed to update content. Please refresh the page and try again.'
INVALID_RESPONSE_MESSAGE = 'Invalid response received from server.'
TOGGLE_TRANSPORT_ERROR_MESSAGE = 'An error occurred while updating the featured status. Please try again.'
TOGGLE_UNKNOWN_ERROR_MESSAGE = 'Unknown error occurred'

STAR_ICON_CLASSES = ['dashicons-star-filled', 'dashicons-star-empty']

# Custom labels for filter placeholders ("All Cooking Method")
FILTER_LABELS = {
    'market_segment': 'Market Segment',
    'cooking_method': 'Cooking Method',
    'menu_occasion': 'Menu Occasion',
    'product_type': 'Product Type',
    'recipe_category': 'Recipe Category',
}
