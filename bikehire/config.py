"""
Configuration for the Bike Hire Usage Pipeline.

This file contains all configurable settings for the pipeline.
Only BASE_PATH needs editing to run on another machine.
"""
from pathlib import Path

# ============================================================
# PATH CONFIGURATION - EDIT THIS FOR YOUR MACHINE
# ============================================================
BASE_PATH = Path("./")

# Derived paths (no changes needed below this line)
DATA_PATH = BASE_PATH / "data"
HIRES_PATH = DATA_PATH / "tfl-daily-cycle-hires.xlsx"
LOCKDOWN_PATH = DATA_PATH / "lockdown_dates.csv"
STATIONS_CACHE_PATH = DATA_PATH / "bikepoints.json"

# ============================================================
# INPUT CONFIGURATION
# ============================================================
# Public docking-station API (TfL BikePoint)
STATION_API_URL = "https://api.tfl.gov.uk/BikePoint"
STATION_API_TIMEOUT = 30   # Seconds before the station request is abandoned

# Spreadsheet layout: three ranges on the same sheet, each (date, count)
HIRES_SHEET = "Data"
HIRES_RANGES = {
    'daily': "A:B",
    'monthly': "D:E",
    'yearly': "G:H",
}

# Lockdown CSV date format
LOCKDOWN_DATE_FORMAT = "%d/%m/%Y"

# ============================================================
# PREPARATION POLICY
# ============================================================
# Value used for lockdown indicators on dates missing from the lockdown file
LOCKDOWN_MISSING_FILL = 0

# Days a dock count may be carried past the last timeline entry.
# None carries it forward indefinitely.
DOCK_FILL_LIMIT_DAYS = None

VERBOSE = True            # If False, stage summaries are not printed

# ============================================================
# FEATURE CONFIGURATION
# ============================================================
# Holiday indicators per calendar (see features.available_holidays)
HOLIDAYS = {
    'World': ['NewYearsDay', 'GoodFriday', 'EasterSunday', 'EasterMonday',
              'ChristmasEve', 'ChristmasDay', 'BoxingDay', 'NewYearsEve'],
    'GB': ['GBNewYearsDay', 'GBEarlyMayBankHoliday', 'GBSpringBankHoliday',
           'GBSummerBankHoliday', 'GBChristmasDay', 'GBBoxingDay', 'GBSpecialBankHoliday'],
}

# Exchange used for the market-closure indicator (holidays.financial_holidays).
# IFEU is ICE Futures Europe, the London exchange.
EXCHANGE = 'IFEU'

# ============================================================
# SPLIT CONFIGURATION
# ============================================================
TRAIN_PROPORTION = 0.9          # Share of pre-holdout rows used for training
HOLDOUT_START = '2020-03-01'    # First date of the holdout period (COVID onwards)

# Target column for the downstream models
TARGET = 'hires_per_dock'

# ============================================================
# MODEL CONFIGURATION (used by modeling.py)
# ============================================================
TUNE_MODELS = False       # If True, run Bayesian hyperparameter tuning
N_SPLITS = 5              # Number of CV splits for tuning
LEN_SPLIT = 90            # Rows (days) per CV validation window
N_ITER = 30               # Number of iterations for tuning
N_JOBS = 4                # Parallel jobs for tuning

GBM_PARAMS = {
    'n_estimators': 500,
    'learning_rate': 0.02,
    'max_depth': 4,
    'subsample': 0.8,
    'random_state': 42,
}
