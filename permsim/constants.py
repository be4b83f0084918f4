"""Permission names recognised by the major browser engines.

Collected from the Gecko, Blink and WebKit ``PermissionName`` IDL files.
"""
from __future__ import annotations

ACCELEROMETER = "accelerometer"
ACCESSIBILITY_EVENTS = "accessibility-events"
AMBIENT_LIGHT_SENSOR = "ambient-light-sensor"
BACKGROUND_FETCH = "background-fetch"
BACKGROUND_SYNC = "background-sync"
BLUETOOTH = "bluetooth"
CAMERA = "camera"
CLIPBOARD = "clipboard"
CLIPBOARD_READ = "clipboard-read"
CLIPBOARD_WRITE = "clipboard-write"
DEVICE_INFO = "device-info"
DISPLAY_CAPTURE = "display-capture"
GEOLOCATION = "geolocation"
GYROSCOPE = "gyroscope"
IDLE_DETECTION = "idle-detection"
LOCAL_FONTS = "local-fonts"
MAGNETOMETER = "magnetometer"
MICROPHONE = "microphone"
MIDI = "midi"
NFC = "nfc"
NOTIFICATIONS = "notifications"
PAYMENT_HANDLER = "payment-handler"
PERIODIC_BACKGROUND_SYNC = "periodic-background-sync"
PERSISTENT_STORAGE = "persistent-storage"
PUSH = "push"
SCREEN_WAKE_LOCK = "screen-wake-lock"
SPEAKER = "speaker"
SPEAKER_SELECTION = "speaker-selection"
STORAGE_ACCESS = "storage-access"
SYSTEM_WAKE_LOCK = "system-wake-lock"
TOP_LEVEL_STORAGE_ACCESS = "top-level-storage-access"
WINDOW_MANAGEMENT = "window-management"
WINDOW_PLACEMENT = "window-placement"
XR_SPATIAL_TRACKING = "xr-spatial-tracking"

PERMISSION_NAMES = frozenset(
    value for key, value in dict(globals()).items() if key.isupper() and isinstance(value, str)
)

__all__ = sorted(key for key in dict(globals()) if key.isupper())
