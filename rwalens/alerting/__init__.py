"""
Risk alerting.

- engine: derives alert drafts from completed analyses
"""
