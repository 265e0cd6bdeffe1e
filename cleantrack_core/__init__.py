# =============================================================================
# cleantrack_core/__init__.py
# CleanTrack - housekeeping task records with local-first sync
# =============================================================================

__version__ = "1.0.0"
