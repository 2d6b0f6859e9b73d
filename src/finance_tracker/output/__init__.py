"""Output generation for CSV and Excel exports."""

from finance_tracker.output.csv_exporter import CSVExporter
from finance_tracker.output.excel_writer import ExcelWriter
from finance_tracker.output.formatting import fold_other

__all__ = ["CSVExporter", "ExcelWriter", "fold_other"]
