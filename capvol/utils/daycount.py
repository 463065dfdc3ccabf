# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

import calendar
import datetime as dt
import numpy as np
import pandas as pd
from capvol.enums import DayCountBasis


def to_datetimeindex(date_object) -> pd.DatetimeIndex:
    """
    Converts a date-like object to a pandas DatetimeIndex.

    Supported types: pd.DatetimeIndex, pd.Timestamp, np.datetime64, dt.date, dt.datetime, pd.Series, list and
    np.ndarray of datetime64. Unsupported types raise a ValueError.
    """
    if isinstance(date_object, pd.DatetimeIndex):
        return date_object
    if isinstance(date_object, pd.Timestamp):
        return pd.DatetimeIndex([date_object.to_pydatetime()])
    elif isinstance(date_object, np.datetime64):
        return pd.DatetimeIndex([pd.to_datetime(date_object)])
    elif isinstance(date_object, (dt.date, dt.datetime)):
        return pd.DatetimeIndex([dt.datetime(date_object.year, date_object.month, date_object.day)])
    elif isinstance(date_object, (pd.Series, list, np.ndarray)):
        return pd.DatetimeIndex(date_object)
    else:
        raise ValueError("Unsupported type", type(date_object), date_object)


def convert_to_same_shape_DatetimeIndex(start_date, end_date):
    start_dti = to_datetimeindex(start_date)
    end_dti = to_datetimeindex(end_date)

    scalar_output = len(start_dti) == 1 and len(end_dti) == 1

    if len(start_dti) == 1 and len(end_dti) > 1:
        start_dti = pd.DatetimeIndex(np.repeat(start_dti.values, len(end_dti)))
    elif len(start_dti) > 1 and len(end_dti) == 1:
        end_dti = pd.DatetimeIndex(np.repeat(end_dti.values, len(start_dti)))

    return start_dti, end_dti, scalar_output


def day_count(start_date,
              end_date,
              day_count_basis: DayCountBasis) -> np.array:

    # References
    # [1] The excel file "30-360-2006ISDADefs" sourced from https://www.isda.org/2008/12/22/30-360-day-count-conventions/

    start_dti, end_dti, scalar_output = convert_to_same_shape_DatetimeIndex(start_date, end_date)

    assert (start_dti <= end_dti).all()

    match day_count_basis:
        case DayCountBasis.ACT_360 | DayCountBasis.ACT_365 | DayCountBasis.ACT_ACT:
            result = np.asarray((end_dti - start_dti).days)
        case DayCountBasis._30_360:
            # "30/360 Bond Basis" per tab "30-360 Bond Basis" in [1]
            d1 = np.where(start_dti.day == 31, 30, start_dti.day)
            d2 = np.where(np.logical_and(d1 == 30, end_dti.day == 31), 30, end_dti.day)
            result = np.asarray(360 * (end_dti.year - start_dti.year) + 30 * (end_dti.month - start_dti.month)) + d2 - d1
        case DayCountBasis._30E_360:
            # "30E/360 Eurobond Basis" per tab "30E-360 Eurobond" in [1]
            d1 = np.where(start_dti.day == 31, 30, start_dti.day)
            d2 = np.where(end_dti.day == 31, 30, end_dti.day)
            result = np.asarray(360 * (end_dti.year - start_dti.year) + 30 * (end_dti.month - start_dti.month)) + d2 - d1
        case _:
            raise ValueError(f"Invalid day_count_basis {day_count_basis}")

    if scalar_output:
        return result.item()
    return result


def year_frac(start_date,
              end_date,
              day_count_basis: DayCountBasis) -> np.array:

    if day_count_basis in {DayCountBasis._30_360, DayCountBasis._30E_360, DayCountBasis.ACT_360}:
        return day_count(start_date, end_date, day_count_basis) / 360.0

    elif day_count_basis == DayCountBasis.ACT_365:
        return day_count(start_date, end_date, day_count_basis) / 365.0

    elif day_count_basis == DayCountBasis.ACT_ACT:
        # ACT/ACT ISDA: days in leap years over 366, days in non-leap years over 365
        start_dti, end_dti, scalar_output = convert_to_same_shape_DatetimeIndex(start_date, end_date)
        assert (start_dti <= end_dti).all()

        start_year = np.asarray(start_dti.year)
        end_year = np.asarray(end_dti.year)
        days_in_start_year = np.array([366 if calendar.isleap(y) else 365 for y in start_year])
        days_in_end_year = np.array([366 if calendar.isleap(y) else 365 for y in end_year])

        next_new_year = pd.DatetimeIndex([dt.datetime(y + 1, 1, 1) for y in start_year])
        end_new_year = pd.DatetimeIndex([dt.datetime(y, 1, 1) for y in end_year])

        same_year = start_year == end_year
        total = np.where(
            same_year,
            np.asarray((end_dti - start_dti).days) / days_in_start_year,
            (end_year - start_year - 1)
            + np.asarray((next_new_year - start_dti).days) / days_in_start_year
            + np.asarray((end_dti - end_new_year).days) / days_in_end_year)

        if scalar_output:
            return total.item()
        return total
    else:
        raise ValueError(f"Invalid day_count_basis {day_count_basis}")


if __name__ == "__main__":
    start_date = pd.date_range(start='2024-01-01', end='2024-12-01', freq='ME')
    end_date = pd.date_range(start='2024-02-29', end='2024-12-31', freq='ME')

    day_count_basis = DayCountBasis.from_value('act/365')
    days = day_count(start_date, end_date, day_count_basis)
    years = year_frac(start_date, end_date, day_count_basis)

    for d1, d2, n, yf in zip(start_date, end_date, days, years):
        print(d1.date(), d2.date(), n.item(), round(yf.item(), 6))
