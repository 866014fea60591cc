"""
Allocation & Backorder Engine Serializers
"""
