"""Constants for DMS.

This module centralizes magic numbers and default values used throughout the application.
"""


# Pagination
DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100

# Task masters
MIN_ESTIMATED_DURATION_MIN = 1
MAX_TITLE_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 1000
MAX_INSTRUCTIONS_LENGTH = 2000

# Task instances
MAX_NOTES_LENGTH = 2000
DUE_SOON_DAYS = 3
SYSTEM_CREATOR = "system"

# Due date offsets (days after the scheduled date) for named frequencies
DUE_OFFSET_DAYS = {
    "daily": 0,
    "weekly": 7,
    "monthly": 30,
    "quarterly": 90,
    "yearly": 365,
}

# Plants
MAX_PLANT_CODE_LENGTH = 50

# Client
SELECTED_PLANT_STORAGE_KEY = "dms_selected_plant"
