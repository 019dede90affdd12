"""
The OnTrackr command-line interface. Run ``ontrackr --help`` for usage.
"""
