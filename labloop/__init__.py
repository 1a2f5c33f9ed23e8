"""LabLoop laboratory backend: sequential identifier service and core records."""

__version__ = "1.0.0"
