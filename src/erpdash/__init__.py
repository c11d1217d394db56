"""erpdash: paginated REST resources for the ERP front-office API."""

__version__ = "0.3.0"
