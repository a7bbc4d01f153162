# DEPENDENCIES
from .report_exporter import export_csv
from .report_exporter import PDFReportGenerator


__all__ = ['export_csv',
           'PDFReportGenerator',
          ]
