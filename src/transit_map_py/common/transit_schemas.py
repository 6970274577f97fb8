import dataframely as dy
import polars as pl


class Route(dy.Schema):
    "Canonical route of an operator, ids are namespaced as {operator_id}:{route_id}."

    id = dy.String(primary_key=True)
    system_id = dy.String(nullable=False)
    short_name = dy.String(nullable=False)
    long_name = dy.String(nullable=False)
    color = dy.String(nullable=False)
    text_color = dy.String(nullable=False)
    type = dy.String(nullable=False)
    station_order = dy.List(dy.String(nullable=False), nullable=True)
    # headways are attached by downstream enrichment, never by the gtfs build
    peak_headway_minutes = dy.Float64(nullable=True)
    off_peak_headway_minutes = dy.Float64(nullable=True)


class Station(dy.Schema):
    "Parent station (or standalone stop) with every route serving it and its platforms."

    id = dy.String(primary_key=True)
    system_id = dy.String(nullable=False)
    name = dy.String(nullable=False)
    latitude = dy.Float64(nullable=False, min=-90.0, max=90.0)
    longitude = dy.Float64(nullable=False, min=-180.0, max=180.0)
    route_ids = dy.List(dy.String(nullable=False), nullable=False)
    is_transfer_point = dy.Bool(nullable=False)
    accessibility = dy.Struct(
        {
            "ada": dy.Bool(nullable=False),
            "elevator": dy.Bool(nullable=False),
        },
        nullable=True,
    )

    # pylint: disable=no-method-argument

    @dy.rule()
    def nonzero_latitude() -> pl.Expr:
        "A latitude of exactly 0 is how feeds mark a stop without a location."
        return pl.col("latitude") != 0.0

    @dy.rule()
    def transfer_point_serves_many_routes() -> pl.Expr:
        "A station is a transfer point exactly when more than one route serves it."
        return pl.col("is_transfer_point") == (pl.col("route_ids").list.len() > 1)

    # pylint: enable=no-method-argument


class RouteGeometry(dy.Schema):
    "One continuous polyline of a route as [longitude, latitude] pairs."

    route_id = dy.String(nullable=False)
    coordinates = dy.List(dy.List(dy.Float64(nullable=False), nullable=False), nullable=False)

    @dy.rule()
    def has_coordinates() -> pl.Expr:  # pylint: disable=no-method-argument
        "Empty polylines are never emitted."
        return pl.col("coordinates").list.len() > 0
