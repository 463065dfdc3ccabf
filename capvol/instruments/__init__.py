from capvol.instruments.ibor_index import IborIndex, USD_LIBOR_3M, AUD_BBSW_3M, EUR_EURIBOR_6M
from capvol.instruments.capfloor import CapFloor, CapletStrip, atm_forward
