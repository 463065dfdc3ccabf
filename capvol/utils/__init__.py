from capvol.utils.daycount import year_frac, day_count, to_datetimeindex
from capvol.utils.tenor import clean_tenor, tenor_to_date_offset, tenor_to_date, is_strictly_increasing_tenors
from capvol.utils.schedule import Schedule, make_schedule
from capvol.utils.business_day_calendar import get_busdaycal
from capvol.utils.exceptions import (CalibrationError, InvalidInputShape, NonPositiveUncertainty,
                                     SurfaceEvaluationError, CalibrationDidNotConverge)
