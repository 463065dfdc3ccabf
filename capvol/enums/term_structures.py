# -*- coding: utf-8 -*-
import os
if __name__ == "__main__":
    os.chdir(os.environ.get('PROJECT_DIR_CAPVOL'))

from enum import Enum
from capvol.enums.helper import is_valid_enum_value, get_enum_member


class TermRate(Enum):
    SIMPLE = 'simple'
    CONTINUOUS = 'continuous'
    ANNUAL = 'annual'


class ZeroCurveInterpMethod(Enum):
    LINEAR_ON_LN_DISCOUNT = 'linear_on_ln_discount'
    CUBIC_SPLINE_ON_LN_DISCOUNT = 'cubic_spline_on_ln_discount'

    @classmethod
    def default(cls):
        return cls.LINEAR_ON_LN_DISCOUNT

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        dict_ = {
            'LINEAR_ON_LN_DISCOUNT': 'Linear on log of discount factors',
            'CUBIC_SPLINE_ON_LN_DISCOUNT': 'Cubic spline on log of discount factors',
        }
        return dict_[self.name]


class VolConvention(Enum):
    BLACK = 'black'
    SHIFTED_BLACK = 'shifted_black'
    NORMAL = 'normal'

    @property
    def is_lognormal(self) -> bool:
        return self in {VolConvention.BLACK, VolConvention.SHIFTED_BLACK}

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()


class QuoteValueType(Enum):
    BLACK_VOLATILITY = 'black_volatility'
    NORMAL_VOLATILITY = 'normal_volatility'
    PRICE = 'price'

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value, cls._transform_value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value, cls._transform_value)

    @staticmethod
    def _transform_value(value: str) -> str:
        aliases = {
            'black_volatility': ['black', 'black_vol', 'lognormal', 'lognormal_vol', 'ln_vol', 'sln', 'vol_sln'],
            'normal_volatility': ['normal', 'normal_vol', 'bachelier', 'vol_n', 'bp_vol'],
            'price': ['px', 'premium'],
        }
        for key, values in aliases.items():
            if value in values:
                return key
        return value

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()


class StrikeType(Enum):
    STRIKE = 'strike'
    SIMPLE_MONEYNESS = 'simple_moneyness'

    @classmethod
    def default(cls):
        return cls.STRIKE

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()


class SurfaceInterpMethod(Enum):
    LINEAR = 'linear'
    NATURAL_CUBIC_SPLINE = 'natural_cubic_spline'

    @classmethod
    def default(cls):
        return cls.LINEAR

    @classmethod
    def is_valid(cls, value):
        return is_valid_enum_value(cls, value)

    @classmethod
    def from_value(cls, value):
        return get_enum_member(cls, value)

    @property
    def display_name(self):
        return self.name.replace('_', ' ').title()
