"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_LIMIT = 30
DEFAULT_LATE_GRACE_MINUTES = 5
DEFAULT_QR_RADIUS_METERS = 100
DEFAULT_PAYROLL_CALCULATOR = "simplified"
DEFAULT_PAYMENT_DAY = 25
DEFAULT_ANNUAL_LEAVE_DAYS = 15

# 통상시급 = 월 기본급 / 209시간
STATUTORY_MONTHLY_HOURS = 209

NO_GIFT = "없음"
CLOSED_DAY_NOTE = "휴무"
CLOSED_DAY_WORK_NOTE = "휴무일 근무"
DEFAULT_PAGE_SIZE = 20
UPCOMING_SCHEDULE_LIMIT = 5
