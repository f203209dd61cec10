"""
Numerical Constants for Map Projections.

This module provides the fixed numbers used throughout the projection engine
with their units and sources: ellipsoid defining values, grid offsets and
scale factors of national and global grids, validity limits, and the
tolerances and iteration caps of the iterative solvers.

References
----------
- WGS84 parameters: NIMA TR8350.2, Third Edition, 2000
- UTM grid: DMA TM 8358.2 (1989), The Universal Grids
- Snyder, J.P. (1987). Map Projections - A Working Manual. USGS Prof. Paper 1395.
- Ordnance Survey (2020). A Guide to Coordinate Systems in Great Britain.
"""

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class Constant:
    """A numerical constant with uncertainty and provenance.

    Attributes
    ----------
    value : float
        The nominal value of the constant.
    uncertainty : float
        The standard uncertainty (1-sigma) of the constant. Zero for values
        that are defined exactly or chosen by convention.
    unit : str
        The unit of the constant.
    source : str
        Reference for the constant value.
    description : str
        Human-readable description of the constant.
    """
    value: float
    uncertainty: float
    unit: str
    source: str
    description: str


class ProjectionConstants:
    """Registry of constants used by the projection engine.

    All constants are class attributes with full metadata.

    Earth Geometry (WGS84)
    ----------------------
    The defining values of the WGS84 ellipsoid, which is also the
    geographic reference frame that callers supply coordinates in.

    Grids
    -----
    Scale factors and false origins of the UTM and Web Mercator systems.

    Solvers
    -------
    Tolerances and iteration caps. Every iterative inverse in the engine is
    bounded by one of the caps below.
    """

    # =========================================================================
    # WGS84 Ellipsoid Parameters
    # Reference: NIMA TR8350.2, Third Edition, 2000
    # =========================================================================

    EARTH_SEMI_MAJOR_AXIS: Final[Constant] = Constant(
        value=6_378_137.0,
        uncertainty=0.0,  # Defined exactly
        unit="m",
        source="WGS84, NIMA TR8350.2",
        description="Semi-major axis (equatorial radius) of WGS84 ellipsoid"
    )

    EARTH_INVERSE_FLATTENING: Final[Constant] = Constant(
        value=298.257223563,
        uncertainty=0.0,  # Defined exactly
        unit="dimensionless",
        source="WGS84, NIMA TR8350.2",
        description="Inverse flattening of WGS84 ellipsoid: 1/f = a / (a - b)"
    )

    # =========================================================================
    # Universal Transverse Mercator
    # =========================================================================

    UTM_SCALE_FACTOR: Final[Constant] = Constant(
        value=0.9996,
        uncertainty=0.0,
        unit="dimensionless",
        source="DMA TM 8358.2",
        description="Scale factor on the central meridian of every UTM zone"
    )

    UTM_FALSE_EASTING: Final[Constant] = Constant(
        value=500_000.0,
        uncertainty=0.0,
        unit="m",
        source="DMA TM 8358.2",
        description="False easting of every UTM zone"
    )

    UTM_SOUTHERN_FALSE_NORTHING: Final[Constant] = Constant(
        value=10_000_000.0,
        uncertainty=0.0,
        unit="m",
        source="DMA TM 8358.2",
        description="False northing of UTM zones in the southern hemisphere"
    )

    UTM_ZONE_WIDTH: Final[Constant] = Constant(
        value=6.0,
        uncertainty=0.0,
        unit="degree",
        source="DMA TM 8358.2",
        description="Longitudinal width of a standard UTM zone"
    )

    UTM_BAND_HEIGHT: Final[Constant] = Constant(
        value=8.0,
        uncertainty=0.0,
        unit="degree",
        source="DMA TM 8358.2",
        description="Latitudinal height of a UTM (MGRS) latitude band"
    )

    # =========================================================================
    # Web Mercator
    # =========================================================================

    WEB_MERCATOR_RADIUS: Final[Constant] = Constant(
        value=6_378_137.0,
        uncertainty=0.0,
        unit="m",
        source="EPSG:3857",
        description="Sphere radius used by the Web (spherical) Mercator projection"
    )

    WEB_MERCATOR_MAX_LATITUDE: Final[Constant] = Constant(
        value=88.0,
        uncertainty=0.0,
        unit="degree",
        source="Convention",
        description="Largest absolute latitude accepted by Web Mercator"
    )

    # =========================================================================
    # Transverse Mercator Series
    # =========================================================================

    TRANSVERSE_MERCATOR_MAX_OFFSET: Final[Constant] = Constant(
        value=15.0,
        uncertainty=0.0,
        unit="degree",
        source="Convention",
        description=(
            "Largest longitude offset from the central meridian accepted by "
            "the Transverse Mercator series"
        )
    )

    # =========================================================================
    # French NTF
    # =========================================================================

    PARIS_MERIDIAN: Final[Constant] = Constant(
        value=2.337229167,
        uncertainty=0.0,
        unit="degree",
        source="IGN, NTF (Paris) Lambert zones",
        description="Longitude of the Paris meridian east of Greenwich (2d 20' 14.025\")"
    )

    # =========================================================================
    # Swiss CH1903
    # =========================================================================

    BERN_LATITUDE: Final[Constant] = Constant(
        value=46.952405555555556,
        uncertainty=0.0,
        unit="degree",
        source="swisstopo, CH1903 fundamental point",
        description="Latitude of the old observatory of Bern (46d 57' 08.66\")"
    )

    BERN_LONGITUDE: Final[Constant] = Constant(
        value=7.4395833333333333,
        uncertainty=0.0,
        unit="degree",
        source="swisstopo, CH1903 fundamental point",
        description="Longitude of the old observatory of Bern (7d 26' 22.50\")"
    )

    # =========================================================================
    # Solver Tolerances and Caps
    # =========================================================================

    MAX_ITERATIONS: Final[Constant] = Constant(
        value=50,
        uncertainty=0.0,
        unit="count",
        source="Convention",
        description="Iteration cap shared by every iterative inverse"
    )

    LATITUDE_TOLERANCE: Final[Constant] = Constant(
        value=1e-12,
        uncertainty=0.0,
        unit="rad",
        source="Convention",
        description="Convergence tolerance of conformal and authalic latitude iterations"
    )

    FOOTPOINT_ARC_TOLERANCE: Final[Constant] = Constant(
        value=1e-4,
        uncertainty=0.0,
        unit="m",
        source="Convention",
        description="Meridional arc residual accepted by the footpoint latitude iteration"
    )

    ECEF_LATITUDE_TOLERANCE: Final[Constant] = Constant(
        value=1e-12,
        uncertainty=0.0,
        unit="rad",
        source="Convention",
        description="Convergence tolerance of the ECEF to geodetic iteration"
    )

    # =========================================================================
    # Conic Configuration Checks
    # =========================================================================

    TANGENT_PARALLEL_TOLERANCE: Final[Constant] = Constant(
        value=1e-10,
        uncertainty=0.0,
        unit="rad",
        source="Convention",
        description="Standard parallels closer than this are one tangent parallel"
    )

    MIN_PARALLEL_SEPARATION: Final[Constant] = Constant(
        value=1e-7,
        uncertainty=0.0,
        unit="rad",
        source="Convention",
        description=(
            "Distinct standard parallels closer than this give an "
            "ill-conditioned cone constant"
        )
    )
