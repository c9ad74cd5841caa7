"""Common literal values used across content_collector.

These constants keep filenames and metadata keys centralized so the collector,
plugins, and tests can import the same values without drifting. Intended for
internal use within the content_collector package.

Examples
--------
>>> from content_collector import _constants
>>> _constants.PAGES_DIR
'pages'
>>> _constants.SPECIAL_PAGE_PREFIX + "header"
'@header'
"""

SITE_CONFIG_FILE = "site.yml"
THEME_CONFIG_FILE = "theme.yml"
PAGE_CONFIG_FILE = "page.yml"
PAGES_DIR = "pages"
HOME_PAGE_DIR = "home"
MARKDOWN_SUFFIX = ".md"
OUTPUT_FILENAME = "site-content.json"

SPECIAL_PAGE_PREFIX = "@"
SPECIAL_PAGES = ("header", "footer", "left", "right")

ENVIRONMENT_VAR = "CONTENT_COLLECTOR_ENV"
DEVELOPMENT = "development"
PRODUCTION = "production"

DEFAULT_FETCH_TIMEOUT_MS = 5000
DEFAULT_REVALIDATE_SECONDS = 3600
