"""
Repository layer
"""
