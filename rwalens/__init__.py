"""
RWA Lens: AI risk assessment for tokenized real-world assets.

Projects are submitted, scored by a language model across five risk
dimensions, and given per-tolerance investment recommendations and alerts.
"""

__version__ = "1.0.0"
