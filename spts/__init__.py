"""
SPTS: Student Performance Tracking System

Derives composite course grades, converted GPA values and academic standing
from raw assessment scores, and fans grade changes out to GPA recalculation
and risk alerting.
"""

__version__ = "1.0.0"
__author__ = "SPTS Development Team"
__description__ = "Student performance tracking: grade trees, grading scales and academic standing"
