"""PlotDesk — real-time update fan-out for the lead/plot CRM dashboard.

The push channel that tells every open dashboard when leads, call logs,
plots, payments or interests change, so the UI refetches instead of polling.
"""

__version__ = "0.1.0"
