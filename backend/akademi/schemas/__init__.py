# Schemas package init
"""Request and response models for the Akademi API."""
