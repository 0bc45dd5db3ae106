"""
Pydantic models for request validation
"""
