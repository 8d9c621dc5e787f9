"""
Flask web application and its supporting services.
"""
