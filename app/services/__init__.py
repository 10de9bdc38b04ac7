"""
Services Module

Business logic layer.
"""
