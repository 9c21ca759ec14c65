"""
Scoring, filtering and acquisition-impact engine for the MSA market dashboard.

Submodules provide record ingestion, global filters, attractiveness scoring,
provider-level market aggregation and bank-acquisition HHI simulation. Every
operation takes DataFrames plus an explicit configuration object and returns
freshly built frames; the presentation layer owns all state.
"""

__version__ = "0.4.0"
