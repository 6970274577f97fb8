"""
Reading GTFS static schedule archives for the transit map build. Archives are
opened in memory, the tables the build needs are extracted as text and decoded
into polars frames typed by the gtfs schema map.
"""
