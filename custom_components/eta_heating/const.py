DOMAIN = "eta_heating"
VERSION = "0.1.0"

# Config entry keys
CONF_ENTRY_NAME = "entry_name"
CONF_BASE_URL = "base_url"
CONF_POLL_INTERVAL = "poll_interval"
CONF_USE_MOCK = "use_mock"

DEFAULT_ENTRY_NAME = "ETA Heating"
DEFAULT_BASE_URL = "http://192.168.0.100:8080"
DEFAULT_POLL_INTERVAL = 60  # seconds

# Seconds the config flow waits for the controller before reporting cannot_connect
CONNECT_CHECK_TIMEOUT = 10
DEFAULT_USE_MOCK = True     # keeps entities populated when no controller is reachable

# Logical channel name of the reading the history is derived from
BOILER_TEMPERATURE = "boiler_temperature"

# Logical channel → ETA variable address (the nine fixed channels)
DEFAULT_VARIABLES: dict[str, str] = {
    "boiler_temperature":  "112/10021/0/0/12161",
    "boiler_setpoint":     "112/10021/0/0/12001",
    "buffer_top":          "112/10241/0/0/12197",
    "buffer_middle":       "112/10241/0/0/12198",
    "buffer_bottom":       "112/10241/0/0/12199",
    "hot_water":           "120/10221/0/0/12115",
    "outdoor_temperature": "120/10221/0/0/12101",
    "flow_temperature":    "120/10101/0/0/12241",
    "room_temperature":    "120/10101/0/0/12111",
}

VARIABLE_NAMES: dict[str, str] = {
    "boiler_temperature":  "Boiler Temperature",
    "boiler_setpoint":     "Boiler Setpoint",
    "buffer_top":          "Buffer Top",
    "buffer_middle":       "Buffer Middle",
    "buffer_bottom":       "Buffer Bottom",
    "hot_water":           "Hot Water",
    "outdoor_temperature": "Outdoor Temperature",
    "flow_temperature":    "Flow Temperature",
    "room_temperature":    "Room Temperature",
}

VARIABLE_ICONS: dict[str, str] = {
    "boiler_temperature":  "mdi:fire",
    "boiler_setpoint":     "mdi:thermostat",
    "buffer_top":          "mdi:storage-tank",
    "buffer_middle":       "mdi:storage-tank",
    "buffer_bottom":       "mdi:storage-tank-outline",
    "hot_water":           "mdi:water-boiler",
    "outdoor_temperature": "mdi:home-thermometer-outline",
    "flow_temperature":    "mdi:pipe",
    "room_temperature":    "mdi:home-thermometer",
}

# ETA REST API
VARIABLE_PATH = "/user/var/"

# Mock mode: address → base value in °C
MOCK_BASE_VALUES: dict[str, float] = {
    "112/10021/0/0/12161": 65.4,
    "112/10021/0/0/12001": 70.0,
    "112/10241/0/0/12197": 58.2,
    "112/10241/0/0/12198": 45.1,
    "112/10241/0/0/12199": 32.8,
    "120/10221/0/0/12115": 52.0,
    "120/10221/0/0/12101": 4.5,
    "120/10101/0/0/12241": 42.0,
    "120/10101/0/0/12111": 21.5,
}
MOCK_FALLBACK_BASE = 20.0
MOCK_JITTER = 1.0        # readings stay within base ± MOCK_JITTER
MOCK_UNIT = "°C"
MOCK_DISPLAY_NAME = "Mock variable"

# Cache bounds
HISTORY_LIMIT = 24
LOG_LIMIT = 50

# Service log levels
LOG_INFO = "info"
LOG_SUCCESS = "success"
LOG_ERROR = "error"
LOG_LEVELS = (LOG_INFO, LOG_SUCCESS, LOG_ERROR)

# Persistent storage
STORAGE_VERSION = 1
STORE_SAVE_DELAY = 1  # seconds; coalesces bursts of writes into one file write
RECORD_CONFIG = "config"
RECORD_SNAPSHOT = "snapshot"
RECORD_HISTORY = "history"
RECORD_LOGS = "logs"
RECORDS = (RECORD_CONFIG, RECORD_SNAPSHOT, RECORD_HISTORY, RECORD_LOGS)

# Cross-view sync
SIGNAL_SNAPSHOT = f"{DOMAIN}_snapshot"
MOCK_SOURCE = "mock"
# hass.data key of the per-controller snapshot records used when no broadcast is available
DATA_SHARED_SNAPSHOTS = f"{DOMAIN}_shared_snapshots"
