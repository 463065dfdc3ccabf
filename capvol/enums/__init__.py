from capvol.enums.utils import DayCountBasis, CompoundingFreq, PeriodFreq, RollConv
from capvol.enums.term_structures import (TermRate, ZeroCurveInterpMethod, VolConvention, QuoteValueType,
                                          StrikeType, SurfaceInterpMethod)
