"""
Shoply client core: cached document access with offline write queuing,
connectivity management and session handling for the Shoply web app.
"""

__version__ = "1.0.0"
