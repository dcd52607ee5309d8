"""
Physical and simulation constants for sailprop.

Distances are in AU, times in days, angles in radians and gravitational
parameters in AU^3/day^2 unless a name says otherwise.
"""

import math

# Basic astronomical and time constants
M_PER_AU = 1.495978707e11  # m per AU
KM_PER_AU = M_PER_AU / 1000.0  # km per AU
DAY = 86400.0  # seconds per day
YEAR = 365.25  # days per Julian year
J2000 = 2451545.0  # Julian date of the J2000.0 epoch

# Sun gravitational parameter: GM = 1.32712440018e20 m^3/s^2 converted to AU^3/day^2
MU_SUN = 2.9591220828559093e-4

# m/s^2 -> AU/day^2
ACCEL_CONVERSION = (DAY * DAY) / M_PER_AU

# Solar sail parameters
SOLAR_PRESSURE_1AU = 4.56e-6  # N/m^2 at 1 AU
R0 = 1.0  # reference distance for SOLAR_PRESSURE_1AU (AU)
MIN_PRESSURE_DISTANCE = 0.01  # pressure is capped inside this distance (AU)
DEFAULT_SHIP_MASS = 10000.0  # kg

# Frame sentinel for the primary star
HELIOCENTRIC = "SUN"

TWO_PI = 2.0 * math.pi
