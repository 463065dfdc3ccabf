from capvol.calibration.definition import DirectCapletCalibrationDefinition
from capvol.calibration.raw_option_data import RawOptionData
from capvol.calibration.penalty import difference_matrix, penalty_matrix
from capvol.calibration.pricing_adapter import CapFloorPricer
from capvol.calibration.residuals import ResidualAssembler
from capvol.calibration.solver import LevenbergMarquardtSolver, SolverSettings, SolverState, SolverStatus
from capvol.calibration.calibrator import CalibrationResult, DirectCapletVolatilityCalibrator, calibrate
