"""Thresholds used by the alert rules (days unless stated otherwise)."""

# Reproduction
GESTATION_DAYS = 315
BIRTH_LOOKAHEAD_DAYS = 30
NO_DIAGNOSIS_AFTER_DAYS = 90
FEMALE_EMPTY_AFTER_DAYS = 180
MIN_BREEDING_AGE_MONTHS = 18

# Sanitary
TREATMENT_RETURN_LOOKAHEAD_DAYS = 15
VACCINATION_LOOKAHEAD_DAYS = 30

# Production (percentages)
MILK_DROP_ALERT_PERCENT = 20.0
MILK_DROP_CRITICAL_PERCENT = 40.0
MILK_RECENT_WINDOW_DAYS = 7
MILK_HISTORICAL_WINDOW_DAYS = 30
MIN_RECENT_MILK_SAMPLES = 3
MIN_HISTORICAL_MILK_SAMPLES = 10

# Management
DRY_OFF_WINDOW_DAYS = 60
DRY_OFF_CRITICAL_DAYS = 45
RECENT_MILKING_DAYS = 7

# Clinical
CLINICAL_WINDOW_DAYS = 60
MIN_TREATMENTS_FOR_SIGNS = 3
MIN_WEIGHT_GAIN_KG = 5.0
MIN_WEIGHINGS = 2

NOT_INFORMED = "Not informed"
