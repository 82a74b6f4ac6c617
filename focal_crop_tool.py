#!/usr/bin/env python3
"""
Focal Crop Tool
===============
Crop one image to several aspect ratios around a shared focal point and
export the crops, or a labelled side-by-side composite, as PNG.

Requirements: pip install PyQt6 Pillow psd-tools

Usage: python focal_crop_tool.py
"""

from focal_crop.app import main

if __name__ == "__main__":
    main()
