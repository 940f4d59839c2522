"""
Cruise behavior prediction: lane sequence evaluation for vehicles in cruise.
"""
