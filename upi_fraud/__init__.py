"""UPI transaction fraud detection: CSV ingestion, model training and prediction."""
__version__ = "1.0.0"
