"""
Status API for the vehicle detection pipeline (FastAPI).
"""
