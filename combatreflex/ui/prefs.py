#combatreflex/ui/prefs.py

from PySide6.QtCore import QByteArray, QSettings

ORG = "CombatReflex"
APP = "CombatReflex"
KEY_GEOMETRY = "window/geometry"
KEY_SOUND = "audio/enabled"


def _s() -> QSettings:
    return QSettings(ORG, APP)


def get_window_geometry() -> QByteArray | None:
    v = _s().value(KEY_GEOMETRY, None)
    if not v:
        return None
    return QByteArray(v)


def save_window_geometry(geometry: QByteArray) -> None:
    _s().setValue(KEY_GEOMETRY, geometry)


def get_sound_enabled() -> bool:
    v = _s().value(KEY_SOUND, True)
    # QSettings hands back strings for bools on some backends
    if isinstance(v, str):
        return v.lower() not in ("false", "0", "no")
    return bool(v)


def save_sound_enabled(enabled: bool) -> None:
    _s().setValue(KEY_SOUND, bool(enabled))
