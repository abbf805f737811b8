ENV_PREFIX = "DUOSTEREO_"
DEFAULT_LOG_LEVEL = "WARNING"

DEFAULT_VIRTUAL_NAME = "HyperBoom_Party_Up"
DEFAULT_DESCRIPTION = "HyperBoom Party Up"
DEFAULT_LEFT_SPEAKER = "HyperBoom Noire"
DEFAULT_RIGHT_SPEAKER = "HyperBoom blanche"

# The audio server gives no readiness signal for ports of a freshly loaded module.
DEFAULT_SETTLE_DELAY_S = 1.0
DEFAULT_SETTLE_TIMEOUT_S = 5.0
PORT_POLL_INTERVAL_S = 0.1

CHANNEL_MAP = ("FL", "FR")
NULL_SINK_MODULE = "module-null-sink"
DUPLEX_MEDIA_CLASS = "Audio/Duplex"

PW_LINK_PACKAGE = "pipewire-bin"
PACTL_PACKAGE = "pulseaudio-utils"

EXIT_OK = 0
EXIT_MISSING_DEVICE = 1
EXIT_MISSING_DEPENDENCY = 2
EXIT_BACKEND_FAILED = 3
EXIT_TIMEOUT = 4
