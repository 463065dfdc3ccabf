from capvol.calibration import (DirectCapletCalibrationDefinition, RawOptionData, DirectCapletVolatilityCalibrator,
                                CalibrationResult, SolverSettings, calibrate)
from capvol.instruments import IborIndex, USD_LIBOR_3M, AUD_BBSW_3M, EUR_EURIBOR_6M
from capvol.term_structures import ZeroCurve, VolatilitySurface, GridSurfaceInterpolator

__version__ = '0.1'
