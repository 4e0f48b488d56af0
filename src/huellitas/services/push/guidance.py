"""User-facing recovery steps shown when push cannot be enabled."""

from huellitas.models.enums import DeviceType

DENIED_STEPS = [
    "Haz clic en el ícono de candado en la barra de direcciones",
    'Cambia "Notificaciones" a "Permitir"',
    "Recarga la página",
]

_DENIED_BY_BROWSER = {
    "Safari": [
        "Abre Ajustes > Safari > Notificaciones",
        'Busca este sitio y selecciona "Permitir"',
        "Recarga la página",
    ],
    "Firefox": [
        "Haz clic en el ícono de candado en la barra de direcciones",
        'Junto a "Enviar notificaciones", quita el bloqueo',
        "Recarga la página",
    ],
}

NOT_SUPPORTED_STEPS = [
    "Tu navegador no soporta notificaciones push",
    "Usa una versión reciente de Chrome, Edge o Firefox",
]

IOS_NOT_SUPPORTED_STEPS = [
    "En iPhone las notificaciones solo funcionan con la app instalada",
    'Toca "Compartir" y luego "Agregar a pantalla de inicio"',
    "Abre la app desde el ícono de la pantalla de inicio",
]


def denied_guidance(browser_name: str) -> list[str]:
    return list(_DENIED_BY_BROWSER.get(browser_name, DENIED_STEPS))


def not_supported_guidance(browser_name: str, device_type: DeviceType) -> list[str]:
    if browser_name == "Safari" and device_type is not DeviceType.DESKTOP:
        return list(IOS_NOT_SUPPORTED_STEPS)
    return list(NOT_SUPPORTED_STEPS)
