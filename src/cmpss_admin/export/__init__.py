from .csv_exporter import export_current_view

__all__ = ["export_current_view"]
