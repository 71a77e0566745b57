"""
Constants and configuration values for Icon Studio.

This module centralizes all constant values, magic numbers, and
configuration settings used throughout the application.
"""

# Reference canvas (live preview) size; every stored offset is relative to it
REFERENCE_CANVAS_SIZE = 512

# Transform model defaults
DEFAULT_SCALE = 1.0
DEFAULT_ROTATION = 0.0
DEFAULT_OFFSET = 0.0
DEFAULT_BACKGROUND_COLOR = (255, 255, 255)
DEFAULT_PADDING = 0.0
DEFAULT_BORDER_WIDTH = 0.0
DEFAULT_BORDER_COLOR = (0, 0, 0)
DEFAULT_BLUR_RADIUS = 4.0
DEFAULT_FONT_SIZE = 48.0
DEFAULT_FONT_COLOR = (0, 0, 0)

# Enumerations
SHAPE_NONE = "none"
SHAPE_CIRCLE = "circle"
SHAPE_ROUNDED_SQUARE = "rounded-square"
ICON_SHAPES = (SHAPE_NONE, SHAPE_CIRCLE, SHAPE_ROUNDED_SQUARE)

FILTER_NONE = "none"
FILTER_GRAYSCALE = "grayscale"
FILTER_SEPIA = "sepia"
FILTER_INVERT = "invert"
FILTER_BLUR = "blur"
FILTER_SHARPEN = "sharpen"
FILTER_KINDS = (FILTER_NONE, FILTER_GRAYSCALE, FILTER_SEPIA, FILTER_INVERT, FILTER_BLUR)
# Registry tag of operators offered in the filter pickers
SELECTABLE_TAG = "selectable"

PADDING_UNIT_PX = "px"
PADDING_UNIT_PERCENT = "percent"
PADDING_UNITS = (PADDING_UNIT_PX, PADDING_UNIT_PERCENT)

# Compositor
ROUNDED_CORNER_RATIO = 0.15
SUPERSAMPLE_FACTOR = 4
PLACEHOLDER_TEXT = "No image"
PLACEHOLDER_TEXT_COLOR = (204, 204, 204)
PLACEHOLDER_FONT_SIZE = 24.0
FONT_CANDIDATES = ("DejaVuSans.ttf", "Arial.ttf", "arial.ttf", "LiberationSans-Regular.ttf")

# Pixel filters
SEPIA_MATRIX = (
    (0.393, 0.769, 0.189),
    (0.349, 0.686, 0.168),
    (0.272, 0.534, 0.131),
)
SHARPEN_KERNEL = (
    (0, -1, 0),
    (-1, 5, -1),
    (0, -1, 0),
)
SHARPEN_BORDER_REPLICATE = "replicate"
SHARPEN_BORDER_ZERO = "zero"

# Editing session
HISTORY_MAX_LENGTH = 50
DRAG_RENDER_INTERVAL_MS = 100
STATUS_MESSAGE_TTL_SECONDS = 4.0
STATUS_ERROR_TTL_SECONDS = 8.0

# Export
DEFAULT_OUTPUT_FORMAT = "PNG"
DEFAULT_ARCHIVE_NAME = "android_icons.zip"
PLATFORM_ANDROID = "android"
PLATFORM_ANDROID_STORE = "android-store"
PLATFORM_IOS = "ios"

# Image source I/O
SUPPORTED_STANDARD_IMAGES = {".png", ".jpg", ".jpeg", ".bmp", ".gif", ".tiff", ".webp"}
STANDARD_IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.tiff *.webp)"
URL_FETCH_TIMEOUT_SECONDS = 30

# Cross-page handoff slot
HANDOFF_FILE_NAME = "handoff.json"
HANDOFF_KEY_SELECTED_EXAMPLE = "selected_example_image_url"

# Project file constants
PROJECTS_DIR_NAME = "Projects"
PROJECT_EXTENSION = ".isproj"
SCHEMA_VERSION = 1

# Safe filename characters
SAFE_FILENAME_CHARS = "-_"
FILENAME_REPLACEMENT_CHAR = "_"

# Project field names
FIELD_SCHEMA_VERSION = "schema_version"
FIELD_NAME = "name"
FIELD_CREATED_AT = "created_at"
FIELD_SOURCE_ORIGIN = "source_origin"
FIELD_TRANSFORM = "transform"
FIELD_EXPORT_OPTIONS = "export_options"

# UI constants
DEFAULT_WINDOW_WIDTH = 1280
DEFAULT_WINDOW_HEIGHT = 820
PREVIEW_LABEL_SIZE = 512
