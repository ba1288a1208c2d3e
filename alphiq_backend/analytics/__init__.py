"""
Analytics package: on-chain score engine, activity aggregates, XP levels.
"""
