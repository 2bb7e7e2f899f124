"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MAX_REASON_LENGTH = 500
MAX_COMMENT_LENGTH = 500
MAX_HOLIDAY_NAME_LENGTH = 100

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 20
MAX_PER_PAGE = 100
