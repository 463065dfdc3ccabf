# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from dataclasses import dataclass, field
import datetime
from typing import List, Tuple
import numpy as np
import pandas as pd
from capvol.enums import RollConv, PeriodFreq, DayCountBasis
from capvol.utils.daycount import year_frac, day_count


@dataclass
class Schedule:
    start_date: [pd.Timestamp, np.datetime64, datetime.date, datetime.datetime]
    end_date: [pd.Timestamp, np.datetime64, datetime.date, datetime.datetime]
    freq: PeriodFreq
    roll_conv: RollConv = RollConv.MODIFIED_FOLLOWING
    direction: str = 'forward'
    cal: np.busdaycalendar = np.busdaycalendar()
    df: pd.DataFrame = field(init=False)

    def __post_init__(self):
        self.start_date = pd.Timestamp(self.start_date)
        self.end_date = pd.Timestamp(self.end_date)
        self.df = make_schedule(start_date=self.start_date,
                                end_date=self.end_date,
                                freq=self.freq,
                                roll_conv=self.roll_conv,
                                direction=self.direction,
                                cal=self.cal)

    def add_fixing_dates(self, fixing_delay: int = 0, col_name: str = 'fixing_date'):
        """
        Add fixing dates, 'fixing_delay' business days before each period start, as the first column.
        """
        dates = self.df['period_start'].to_numpy(dtype='datetime64[D]')
        fixing_dates = np.busday_offset(dates, offsets=-fixing_delay, roll='preceding', busdaycal=self.cal)
        if col_name in self.df.columns:
            self.df.pop(col_name)
        self.df.insert(loc=0, column=col_name, value=pd.DatetimeIndex(fixing_dates).astype('datetime64[ns]'))

    def add_payment_dates(self, payment_delay: int = 0, col_name: str = 'payment_date'):
        """
        Add payment dates, 'payment_delay' business days after each period end (payments in arrears).
        """
        payment_dates = [busday_offset_timestamp(d, payment_delay, self.roll_conv, self.cal) for d in self.df['period_end']]
        self.df[col_name] = pd.DatetimeIndex(payment_dates).astype('datetime64[ns]')

    def add_period_daycount(self, day_count_basis: DayCountBasis):
        if 'period_daycount' in self.df.columns:
            self.df.pop('period_daycount')
        col_index = self.df.columns.get_loc('period_end')
        days = day_count(self.df['period_start'], self.df['period_end'], day_count_basis)
        self.df.insert(loc=col_index + 1, column='period_daycount', value=np.atleast_1d(days))

    def add_period_yearfrac(self, day_count_basis: DayCountBasis):
        if 'period_yearfrac' in self.df.columns:
            self.df.pop('period_yearfrac')
        col_index = self.df.columns.get_loc('period_end')
        if 'period_daycount' in self.df.columns:
            col_index += 1
        years = year_frac(self.df['period_start'], self.df['period_end'], day_count_basis)
        self.df.insert(loc=col_index + 1, column='period_yearfrac', value=np.atleast_1d(years))


def busday_offset_timestamp(pd_timestamp: pd.Timestamp,
                            offsets: int,
                            roll_conv: RollConv,
                            cal: np.busdaycalendar=np.busdaycalendar()) -> pd.Timestamp:
    if roll_conv == RollConv.UNADJUSTED:
        if offsets == 0:
            return pd.Timestamp(pd_timestamp)
        roll_conv = RollConv.FOLLOWING
    np_datetime64D = np.array([pd_timestamp]).astype('datetime64[D]')
    rolled_date_np = np.busday_offset(np_datetime64D, offsets=offsets, roll=roll_conv.value, busdaycal=cal)[0]
    return pd.Timestamp(rolled_date_np)


def make_schedule(
        start_date: [pd.Timestamp, np.datetime64, datetime.date, datetime.datetime],
        end_date: [pd.Timestamp, np.datetime64, datetime.date, datetime.datetime],
        freq: PeriodFreq,
        roll_conv: RollConv=RollConv.MODIFIED_FOLLOWING,
        direction: str='forward',
        cal: np.busdaycalendar=np.busdaycalendar(),
        ) -> pd.DataFrame:
    """
    Create a schedule of regular periods between the start and end dates.

    Parameters
    ----------
    start_date : pandas.Timestamp
        Specifies the effective date of the schedule
    end_date : pandas.Timestamp
        Specifies the termination date of the schedule
    freq : PeriodFreq
        Specify the period frequency
    roll_conv : RollConv
        How to treat dates that do not fall on a valid day. The default is RollConv.MODIFIED_FOLLOWING.
    direction : {'forward', 'backward'}
        Generation direction; any stub falls at the end ('forward') or at the start ('backward').
    cal : np.busdaycalendar
        Specifies the business day calendar to observe.

    Returns
    -------
    schedule : pandas.DataFrame
        Columns:
            - period_start
            - period_end
    """
    start_date, end_date = pd.Timestamp(start_date), pd.Timestamp(end_date)

    if start_date >= end_date:
        raise ValueError(f"start_date {start_date} must be before end_date {end_date}")

    d1, d2 = generate_date_schedule(start_date, end_date, freq, direction, roll_conv, cal)
    return pd.DataFrame({'period_start': d1, 'period_end': d2})


def generate_date_schedule(
        start_date: pd.Timestamp,
        end_date: pd.Timestamp,
        freq: PeriodFreq,
        direction: str,
        roll_conv: RollConv=RollConv.MODIFIED_FOLLOWING,
        cal: np.busdaycalendar=np.busdaycalendar()
    ) -> Tuple[List, List]:
    """
    Generates a schedule of start and end dates between start_date and end_date.

    Unadjusted dates are always built from the anchor date (start date going forward, end date going backward)
    before business day adjustment, so month-end anchors do not drift.

    Raises
    ------
    ValueError, TypeError
        If any of the inputs have invalid values or types
    """
    if direction not in {'forward', 'backward'}:
        raise ValueError(f"Invalid direction '{direction}'. Must be 'forward' or 'backward'.")
    if not isinstance(start_date, pd.Timestamp) or not isinstance(end_date, pd.Timestamp):
        raise TypeError(f"'start_date' {start_date} and 'end_date' {end_date} must be pandas Timestamp objects.")
    if start_date >= end_date:
        raise ValueError("'start_date' must be earlier than 'end_date'.")

    i = 1
    start_dates = []
    end_dates = []
    start_date_in_schedule = busday_offset_timestamp(start_date, 0, roll_conv, cal)
    end_date_in_schedule = busday_offset_timestamp(end_date, 0, roll_conv, cal)

    if direction == 'forward':
        unadjusted = start_date + freq.date_offset
        while unadjusted < end_date:
            current_date = busday_offset_timestamp(unadjusted, 0, roll_conv, cal)
            start_dates.append(current_date)
            end_dates.append(current_date)
            i += 1
            unadjusted = start_date + freq.multiply_date_offset(i)

        start_dates = [start_date_in_schedule] + start_dates
        end_dates.append(end_date_in_schedule)

    elif direction == 'backward':
        unadjusted = end_date - freq.date_offset
        while unadjusted > start_date:
            current_date = busday_offset_timestamp(unadjusted, 0, roll_conv, cal)
            start_dates.append(current_date)
            end_dates.append(current_date)
            i += 1
            unadjusted = end_date - freq.multiply_date_offset(i)

        start_dates.append(start_date_in_schedule)
        end_dates = [end_date_in_schedule] + end_dates

        start_dates.reverse()
        end_dates.reverse()

    return start_dates, end_dates


if __name__ == "__main__":
    schedule = Schedule(start_date=pd.Timestamp('2024-08-30'), end_date=pd.Timestamp('2026-08-30'), freq=PeriodFreq.QUARTERLY)
    schedule.add_fixing_dates(fixing_delay=2)
    schedule.add_payment_dates()
    schedule.add_period_yearfrac(DayCountBasis.ACT_360)
    print(schedule.df)
