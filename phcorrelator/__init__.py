"""
# __init__.py is a part of the PHCORRELATOR package.
# Copyright (C) 2025 PHCORRELATOR authors (see AUTHORS for details).
# PHCORRELATOR is licensed under the GNU GPL v3 or later, see LICENSE for details.
# Please respect the MCnet Guidelines, see GUIDELINES for details.
"""
"""Energy-energy correlator calculations on jets with spin sorting."""
