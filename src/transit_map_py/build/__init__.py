"""
Transformations from decoded GTFS tables to the routes, stations and route
geometries of an operator's map dataset.
"""
