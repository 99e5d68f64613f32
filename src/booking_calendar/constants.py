"""Shared constants for the booking calendar."""

from __future__ import annotations

# Label used when a booking carries no course type
DEFAULT_COURSE_LABEL = "Course"

# Filter sentinel meaning "every line"
ALL_LINES = "all"

# Course type chips shown when no course types are configured in the store
DEFAULT_COURSE_TYPE_CHIPS = (
    "CFI Initial – 10 Day",
    "CFII – 7 Day",
    "Instrument Finish-Up",
    "Commercial Finish-Up",
    "10-Day",
)

# Month grid column headers (Monday-start weeks)
DAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# Text constraints mirrored from the store schema
MAX_NAME_LENGTH = 255
MAX_NOTE_LENGTH = 2000

# Query limits
DEFAULT_BOOKINGS_LIMIT = 1000
DEFAULT_RANGE_BOOKINGS_LIMIT = 500
