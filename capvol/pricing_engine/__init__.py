from capvol.pricing_engine.black76_bachelier import (black76_price, bachelier_price, black76_solve_implied_vol,
                                                     bachelier_solve_implied_vol, black76_sln_to_normal_vol,
                                                     normal_vol_to_black76_sln, shift_black76_vol)
