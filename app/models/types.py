from sqlalchemy import Text
from sqlalchemy.types import UserDefinedType


class Geography(UserDefinedType):
    """PostGIS geography column. Values are written as EWKT strings."""

    cache_ok = True

    def __init__(self, geometry_type: str = "POINT", srid: int = 4326):
        self.geometry_type = geometry_type
        self.srid = srid

    def get_col_spec(self, **kw):
        return f"geography({self.geometry_type},{self.srid})"


# plain text outside postgres so the schema still builds on the sqlite fallback
GeographyPoint = Geography("POINT", 4326).with_variant(Text(), "sqlite")


def point_ewkt(lat: float, lng: float, srid: int = 4326) -> str:
    # PostGIS points are (x=lng, y=lat)
    return f"SRID={srid};POINT({lng} {lat})"
