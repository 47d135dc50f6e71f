"""
Constants for bayernatlas-heightmapper.

All magic strings, service defaults, colour anchors, and messages live here.
"""


class AppConfig:
    NAME = "bayernatlas-heightmapper"
    VERSION = "0.1.0"
    DESCRIPTION = "Download heightmap images or heightmap values from Bayernatlas."


class EnvVar:
    SERVICE_URL = "HEIGHTMAPPER_SERVICE_URL"
    BATCH_SIZE = "HEIGHTMAPPER_BATCH_SIZE"
    TIMEOUT = "HEIGHTMAPPER_TIMEOUT"


class OutputMode:
    IMAGE = "image"
    RAW = "raw"
    TOPOGRAPHIC = "topographic"


class Traversal:
    BOUSTROPHEDON = "boustrophedon"
    PER_COLUMN = "per-column"


OUTPUT_MODES = [OutputMode.IMAGE, OutputMode.RAW, OutputMode.TOPOGRAPHIC]
TRAVERSALS = [Traversal.BOUSTROPHEDON, Traversal.PER_COLUMN]
SUMMARY_FORMATS = ["text", "json"]

# Elevation profile service
DEFAULT_SERVICE_URL = "https://geoportal.bayern.de/ba-backend/dgm/profile/"
DEFAULT_BATCH_SIZE = 5000  # points per snake request
DEFAULT_TIMEOUT_S = 60.0
GEOMETRY_TYPE = "LineString"
ALTITUDE_FIELD = "COMB"

# Grid defaults (GK4 metres)
DEFAULT_SIZE_M = 5000
DEFAULT_STEP_M = 20
DEFAULT_SCALE = 1.0
MAX_OUTPUT_PIXELS = 10_000 * 10_000

# Heights at or below this are the service's "outside coverage" answer.
NO_DATA_THRESHOLD_M = 1.0

# Height -> colour anchors for topographic maps, strictly increasing.
# The first and last entries are sentinels so every real height has an interval.
COLOR_ANCHORS: list[tuple[float, tuple[int, int, int]]] = [
    (-1000.0, (0, 0, 0)),
    (0.0, (120, 170, 255)),
    (200.0, (240, 255, 200)),
    (350.0, (170, 255, 120)),
    (450.0, (170, 200, 50)),
    (600.0, (140, 160, 50)),
    (1000.0, (255, 200, 120)),
    (2000.0, (255, 240, 200)),
    (10000.0, (255, 255, 255)),
]
CONTOUR_LINE_COLOR = (0, 0, 0)


class ErrorMessages:
    RAW_WITH_TOPO = "Raw mode is incompatible with topographical mode."
    TOPO_SPACING_REQUIRED = "Topographic mode requires a line spacing. Example: --topo 15"
    SPACING_WITHOUT_TOPO = "A line spacing ({}) only applies to topographic mode, not '{}'."
    OUTPUT_REQUIRED = (
        "You must specify an output file at the end when not using '-r' or '--raw'."
    )
    EMPTY_GRID = "Grid would be empty: size ({}, {}) with {}m steps gives {}x{} points."
    INVALID_SIZE = "Invalid size value '{}'. Valid Example: 12000,12000"
    OUTPUT_TOO_LARGE = "Upscaling by {:g} would produce more than {} output pixels."
    NO_VALID_DATA = (
        "No valid height data: every sample is <= {:g}m (outside coverage or failed batches)."
    )
    BATCH_FAILED = "Batch {} of {} returned no usable data"
    WRITE_FAILED = "Could not write output to {}: {}"
    UNKNOWN_MODE = "Unknown output mode '{}'. Available: {}"
    UNKNOWN_TRAVERSAL = "Unknown traversal '{}'. Available: {}"


class SuccessMessages:
    BATCH_PROGRESS = "Processing batch {} of {}"
    LINE_PROGRESS = "Processing line {} of {}"
    FETCH_COMPLETE = "Finished! {} batches, {} failed"
    SAVED = "Output saved to {}"
