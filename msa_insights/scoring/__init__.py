"""
Attractiveness scoring: flat weights, priority buckets, quartile categories
and opportunity ranking.
"""
