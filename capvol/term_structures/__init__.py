from capvol.term_structures.zero_curve import ZeroCurve
from capvol.term_structures.volatility_surface import GridSurfaceInterpolator, VolatilitySurface, convert_volatility
