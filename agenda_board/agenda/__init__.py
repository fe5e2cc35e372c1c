"""
Agenda extraction: read per-day agenda boxes from weekly slides into the current-day
table, and archive that table into monthly partitions.
"""
