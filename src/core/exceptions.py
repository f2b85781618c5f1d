"""Excepciones del Core.

Por qué una jerarquía propia:
- Separa los fallos *fatales* (configuración) de los fallos por dominio,
  que nunca son excepciones: se degradan a un `Verdict` con `available=None`.
- La CLI puede distinguir qué mostrar y con qué exit code terminar.
"""

from __future__ import annotations


class DomainRadarError(Exception):
    """Base de todas las excepciones de la aplicación."""


class ConfigurationError(DomainRadarError):
    """Configuración inválida o ilegible (config.json, settings)."""


class EndpointMapUnavailable(ConfigurationError):
    """No hay ningún mapa zona -> endpoint RDAP disponible.

    Ni el bootstrap dinámico ni el mapa estático de respaldo aportan datos,
    así que el tier per-zone no puede funcionar para ningún dominio.
    """


class PersistenceError(DomainRadarError):
    """Falla al escribir un checkpoint (checked/found/status)."""
