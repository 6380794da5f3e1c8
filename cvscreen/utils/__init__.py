"""
Colorimetry Utilities

- color_space: sRGB / XYZ / L*a*b* conversions and a*b* principal-axis angle
- color_delta: CIE 1976 color difference
- file_io: JSON helpers
"""
