"""Constants for the Production Values integration."""

DOMAIN = "production_values"

# Config entry data
CONF_PROJECT_NAME = "project_name"
CONF_DECLARED_VARIABLES = "declared_variables"

# Config entry options
OPTION_VALUES = "values"
OPTION_DEBUG_LOG = "debug_log"

# Keys of a single configured production value
CONF_VARIABLE_NAME = "variable_name"
CONF_LABEL_KEY = "label_key"
CONF_DISPLAY_FORMAT = "display_format"
CONF_STRING_FORMAT = "string_format"

DEBUG_LOG = False

# Label catalogs shipped with the integration (labels/<language>.json)
LABELS_DIRECTORY = "labels"
DEFAULT_LANGUAGE = "en"

# Services
SERVICE_PUSH_VALUES = "push_values"
SERVICE_SET_LANGUAGE = "set_language"

ATTR_ENTRY_ID = "entry_id"
ATTR_VARIABLES = "variables"
ATTR_LANGUAGE = "language"

# Extra state attributes exposed by sensors
ATTR_PROJECT = "project"
ATTR_VARIABLE = "variable"
ATTR_LABEL_KEY = "label_key"
ATTR_DISPLAY_FORMAT = "display_format"
ATTR_TIMESTAMP = "timestamp"
