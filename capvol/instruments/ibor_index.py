# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Union
import numpy as np

from capvol.enums import PeriodFreq, DayCountBasis, RollConv
from capvol.utils.business_day_calendar import get_busdaycal


@dataclass(frozen=True)
class IborIndex:
    """
    Floating rate index underlying the caps/floors.

    'tenor' is the accrual period of each caplet, 'day_count_basis' the accrual day count and 'settlement_delay' the
    number of business days between the fixing date and the start of the accrual period.
    """
    name: str
    tenor: PeriodFreq
    day_count_basis: DayCountBasis
    settlement_delay: int = 2
    roll_conv: RollConv = RollConv.MODIFIED_FOLLOWING
    calendar: Optional[Union[str, tuple]] = None # currency or locale keys of capvol.utils.business_day_calendar

    def __post_init__(self):
        object.__setattr__(self, 'tenor', PeriodFreq.from_value(self.tenor))
        object.__setattr__(self, 'day_count_basis', DayCountBasis.from_value(self.day_count_basis))
        object.__setattr__(self, 'roll_conv', RollConv.from_value(self.roll_conv))
        if self.settlement_delay < 0:
            raise ValueError(f"'settlement_delay' must be non-negative, received {self.settlement_delay}")

    @cached_property
    def busdaycal(self) -> np.busdaycalendar:
        if self.calendar is None:
            return np.busdaycalendar()
        keys = [self.calendar] if isinstance(self.calendar, str) else list(self.calendar)
        return get_busdaycal(keys)


USD_LIBOR_3M = IborIndex(name='USD-LIBOR-3M', tenor=PeriodFreq.QUARTERLY, day_count_basis=DayCountBasis.ACT_360,
                         settlement_delay=2, calendar=('USD', 'GBP'))
AUD_BBSW_3M = IborIndex(name='AUD-BBSW-3M', tenor=PeriodFreq.QUARTERLY, day_count_basis=DayCountBasis.ACT_365,
                        settlement_delay=1, calendar='AUD')
EUR_EURIBOR_6M = IborIndex(name='EUR-EURIBOR-6M', tenor=PeriodFreq.SEMIANNUAL, day_count_basis=DayCountBasis.ACT_360,
                           settlement_delay=2, calendar='EUR')
