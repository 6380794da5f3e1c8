"""
Color-Vision Arrangement Screening

A cap-arrangement screening engine modeled on the Farnsworth D-15 and Lanthony
Desaturated D-15 tests, using CIE L*a*b* path distances (ΔE*ab) and a*b*
principal-axis analysis of crossing errors.
"""

__version__ = "0.1.0"
__author__ = "Color Vision Screening Team"
