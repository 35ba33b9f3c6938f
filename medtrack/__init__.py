"""Local health-data store for medication, blood-pressure and therapy tracking.

This package contains the domain models, the document store and the summary
calculations consumed by the UI layer, isolated from the UI and platform glue.
"""
