"""
Credit Monitor - Business Credit Scoring & Monitoring Engine

Scores businesses from weighted component metrics, classifies the score
into a grade and risk tier, and monitors each business for threshold
breaches, emitting deduplicated, severity-ranked alerts.
"""

__version__ = "0.1.0"
